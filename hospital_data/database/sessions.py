"""
Session storage

- Sessions live in sessions.json, enveloped under "Sessions"
- No surrogate key: a session is identified by (patient id, start timestamp)
- With patient/supervisor stores supplied, add() and update() check that the
  referenced patient and supervisor exist; without them, no checks are made
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from hospital_data.core.config import SESSIONS_FILE
from hospital_data.core.exceptions import ReferenceNotFoundError
from hospital_data.database.codec import EnvelopeCodec
from hospital_data.database.schemas import Session
from hospital_data.database.storage import BaseStore, PathLike, PatientStore, SupervisorStore
from hospital_data.services.utils import (
    ids_equal,
    is_blank,
    is_default_timestamp,
    normalize_timestamp,
    to_utc,
)

logger = logging.getLogger(__name__)


class SessionStore(BaseStore[Session]):
    """
    Therapy sessions, optionally validated against patients and supervisors
    """
    kind = "session"

    def __init__(
        self,
        path: PathLike = Path("data") / SESSIONS_FILE,
        patients: Optional[PatientStore] = None,
        supervisors: Optional[SupervisorStore] = None,
    ):
        super().__init__(path, EnvelopeCodec(Session, "Sessions"))
        self._patients = patients
        self._supervisors = supervisors

    @property
    def validated(self) -> bool:
        return self._patients is not None or self._supervisors is not None

    def get_by_patient(self, patient_id: str) -> List[Session]:
        """
        Get a snapshot of all sessions of one patient (case-insensitive)
        """
        self._ensure_loaded()
        with self._lock.read_locked():
            return [
                self._copy(session) for session in self._records
                if ids_equal(session.patient_id, patient_id)
            ]

    def add(self, session: Session) -> Session:
        """
        Add a session, stamping it with the current time if it has no start

        Raises:
            InvalidArgumentError: session is None
            ReferenceNotFoundError: unknown patient or supervisor (validated mode)
        """
        self._require(session, self.kind)
        session = self._copy(session)
        with self._lock.write_locked():
            self._ensure_loaded_unlocked()
            self._validate_references(session)
            session.started_at = normalize_timestamp(session.started_at)
            self._commit(self._records + [session])
            return self._copy(session)

    def update(self, session: Session) -> bool:
        """
        Replace the session with the same patient id and start timestamp

        When several sessions share that key, only the first one is replaced.
        A missing start timestamp matches a stored session without one; the
        replacement is stamped with the current time.
        Returns False (and writes nothing) when no session matches.
        """
        self._require(session, self.kind)
        session = self._copy(session)
        with self._lock.write_locked():
            self._ensure_loaded_unlocked()
            index = self._index_of(session.patient_id, session.started_at)
            if index < 0:
                return False

            self._validate_references(session)
            session.started_at = normalize_timestamp(session.started_at)
            records = list(self._records)
            records[index] = session
            self._commit(records)
            return True

    def remove(self, patient_id: str, started_at: Optional[datetime]) -> bool:
        """
        Remove the session(s) with this patient id and start timestamp

        None (or the zero timestamp) removes sessions stored without a start.
        Returns True if anything was removed.
        """
        self._require(patient_id, "patient_id")
        with self._lock.write_locked():
            self._ensure_loaded_unlocked()
            kept = [
                session for session in self._records
                if not self._matches(session, patient_id, started_at)
            ]
            if len(kept) == len(self._records):
                return False
            self._commit(kept)
            return True

    def remove_all_by_patient(self, patient_id: str) -> int:
        """
        Remove every session of a patient

        Used as the cascade when a patient is removed. Blank ids remove nothing.

        Returns:
            Number of sessions removed
        """
        if is_blank(patient_id):
            return 0
        with self._lock.write_locked():
            self._ensure_loaded_unlocked()
            kept = [session for session in self._records if not ids_equal(session.patient_id, patient_id)]
            count = len(self._records) - len(kept)
            if count:
                self._commit(kept)
            logger.debug("Removed %d session(s) of patient %s", count, patient_id)
            return count

    def _validate_references(self, session: Session):
        # Caller holds our write lock; the other stores are read under their own locks
        if self._patients is not None and self._patients.get_by_id(session.patient_id) is None:
            raise ReferenceNotFoundError("patient", session.patient_id)
        if (self._supervisors is not None and not is_blank(session.supervisor_id)
                and self._supervisors.get_by_id(session.supervisor_id) is None):
            raise ReferenceNotFoundError("supervisor", session.supervisor_id)

    def _index_of(self, patient_id: str, started_at: Optional[datetime]) -> int:
        for index, session in enumerate(self._records):
            if self._matches(session, patient_id, started_at):
                return index
        return -1

    @staticmethod
    def _matches(session: Session, patient_id: str, started_at: Optional[datetime]) -> bool:
        return ids_equal(session.patient_id, patient_id) and _same_start(session.started_at, started_at)


def _same_start(stored: Optional[datetime], wanted: Optional[datetime]) -> bool:
    # None and the zero timestamp are one key value
    if is_default_timestamp(stored) or is_default_timestamp(wanted):
        return is_default_timestamp(stored) and is_default_timestamp(wanted)
    return to_utc(stored) == to_utc(wanted)

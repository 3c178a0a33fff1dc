"""
JSON file storage with in-memory caching

- One store per JSON file, records loaded lazily on first access and kept in memory
- Every successful mutation rewrites the whole file
- Reads return deep copies so callers never share state with the store
- A missing or unreadable file yields an empty store (logged, never raised)
"""
import logging
from pathlib import Path
from typing import Callable, Generic, List, Optional, Union

from hospital_data.core.config import ENVIRONMENTS_FILE, PATIENTS_FILE, SUPERVISORS_FILE
from hospital_data.core.exceptions import DuplicateIdError, InvalidArgumentError, ReferenceNotFoundError
from hospital_data.database.codec import EnvelopeCodec, FlatCodec, R
from hospital_data.database.lock import ReadWriteLock
from hospital_data.database.schemas import Environment, EnvironmentConfiguration, Patient, Supervisor
from hospital_data.services.utils import ids_equal, is_blank, new_id, normalize_timestamp

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

MIN_ASSISTANCE = 1
MAX_ASSISTANCE = 10


class BaseStore(Generic[R]):
    """
    Lazily-loaded, lock-guarded collection backed by one JSON file

    Subclasses implement the mutating operations; this class owns loading,
    snapshots and persistence.
    """
    kind = "record"
    warn_if_empty = False

    def __init__(self, path: PathLike, codec: FlatCodec[R]):
        self.path = Path(path)
        self._codec = codec
        self._lock = ReadWriteLock()
        self._loaded = False
        self._records: List[R] = []
        self._last_load_error: Optional[str] = None

    @property
    def last_load_error(self) -> Optional[str]:
        """
        Message of the last failed load, None if the last load succeeded

        Cleared once the file has been rewritten by a successful mutation.
        """
        with self._lock.read_locked():
            return self._last_load_error

    def get_all(self) -> List[R]:
        """
        Get a snapshot of every record, loading the file on first access
        """
        self._ensure_loaded()
        with self._lock.read_locked():
            return [self._copy(record) for record in self._records]

    def reload(self):
        """
        Discard the in-memory records and load the file again
        """
        with self._lock.write_locked():
            self._loaded = False
            self._ensure_loaded_unlocked()

    def _ensure_loaded(self):
        if self._loaded:
            return
        with self._lock.write_locked():
            # Another thread may have loaded while we were waiting
            self._ensure_loaded_unlocked()

    def _ensure_loaded_unlocked(self):
        if self._loaded:
            return
        self._records = self._load()
        self._loaded = True

    def _load(self) -> List[R]:
        if not self.path.exists():
            logger.warning("%s file not found: %s (starting empty)", self.kind.capitalize(), self.path)
            self._last_load_error = None
            return []

        try:
            records = self._codec.load(self.path)
        except (OSError, ValueError) as exc:
            # Covers JSON decode errors, shape errors and record validation errors
            logger.exception("Failed to load %s records from %s, starting empty", self.kind, self.path)
            self._last_load_error = f"{type(exc).__name__}: {exc}"
            return []

        self._last_load_error = None
        if not records and self.warn_if_empty:
            logger.warning("No %s records in %s", self.kind, self.path)
        else:
            logger.info("Loaded %d %s record(s) from %s", len(records), self.kind, self.path)
        return records

    def _commit(self, records: List[R]):
        """
        Persist the new record list, then make it the live one

        Caller holds the write lock. If the write fails, the live list is untouched.
        """
        if self._last_load_error is not None:
            logger.warning(
                "Overwriting %s after a failed load (%s); its previous contents are lost",
                self.path, self._last_load_error,
            )
        self._codec.dump(self.path, records)
        self._records = records
        self._last_load_error = None
        logger.debug("Wrote %d %s record(s) to %s", len(records), self.kind, self.path)

    def _require(self, value, argument: str):
        if value is None:
            raise InvalidArgumentError(argument)

    @staticmethod
    def _copy(record: R) -> R:
        return record.model_copy(deep=True)


class RecordStore(BaseStore[R]):
    """
    Store of records identified by a case-insensitive `id`
    """
    id_prefix = "rec"

    def get_by_id(self, record_id: str) -> Optional[R]:
        """
        Get one record by id (case-insensitive), None if absent
        """
        self._ensure_loaded()
        with self._lock.read_locked():
            index = self._index_of(record_id)
            return self._copy(self._records[index]) if index >= 0 else None

    def add(self, record: R) -> R:
        """
        Add a record, generating its id when blank

        Returns:
            The stored record, with its id filled in

        Raises:
            InvalidArgumentError: record is None
            DuplicateIdError: a record with the same id already exists
        """
        self._require(record, self.kind)
        record = self._copy(record)
        with self._lock.write_locked():
            self._ensure_loaded_unlocked()
            if is_blank(record.id):
                record.id = new_id(self.id_prefix)
            if self._index_of(record.id) >= 0:
                raise DuplicateIdError(self.kind, record.id)

            self._prepare(record)
            self._commit(self._records + [record])
            return self._copy(record)

    def update(self, record: R) -> bool:
        """
        Replace the record with the same id

        Returns False (and writes nothing) when no such record exists.
        """
        self._require(record, self.kind)
        record = self._copy(record)
        with self._lock.write_locked():
            self._ensure_loaded_unlocked()
            index = self._index_of(record.id)
            if index < 0:
                return False

            self._prepare(record)
            records = list(self._records)
            records[index] = record
            self._commit(records)
            return True

    def remove(self, record_id: str) -> bool:
        """
        Remove every record with this id (case-insensitive)

        Returns True if anything was removed.
        """
        self._require(record_id, f"{self.kind}_id")
        with self._lock.write_locked():
            self._ensure_loaded_unlocked()
            kept = [record for record in self._records if not ids_equal(record.id, record_id)]
            if len(kept) == len(self._records):
                return False
            self._commit(kept)
            return True

    def _index_of(self, record_id: Optional[str]) -> int:
        # Caller holds a lock
        if is_blank(record_id):
            return -1
        for index, record in enumerate(self._records):
            if ids_equal(record.id, record_id):
                return index
        return -1

    def _prepare(self, record: R):
        """Hook to normalize a record before it is written"""


class PatientStore(RecordStore[Patient]):
    """
    Patients (les_patients.json, flat array)

    Removal observers are notified after the patient is removed and the
    store's lock is released, but before remove() returns.
    """
    kind = "patient"
    id_prefix = "patient"

    def __init__(self, path: PathLike = Path("data") / PATIENTS_FILE):
        super().__init__(path, FlatCodec(Patient))
        self._removal_subscribers: List[Callable[[str], object]] = []

    def subscribe_removed(self, callback: Callable[[str], object]):
        """
        Register a callback invoked with the id of every removed patient
        """
        self._removal_subscribers.append(callback)

    def update_follow_up(self, patient_id: str, follow_up: Optional[str]) -> bool:
        """
        Update only the follow-up note of a patient

        Returns False when the patient does not exist.
        """
        with self._lock.write_locked():
            self._ensure_loaded_unlocked()
            index = self._index_of(patient_id)
            if index < 0:
                return False

            records = list(self._records)
            records[index] = records[index].model_copy(update={"follow_up": follow_up or ""})
            self._commit(records)
            return True

    def remove(self, patient_id: str) -> bool:
        removed = super().remove(patient_id)
        if removed:
            for callback in list(self._removal_subscribers):
                callback(patient_id)
        return removed

    def _prepare(self, patient: Patient):
        patient.created_at = normalize_timestamp(patient.created_at)


class SupervisorStore(RecordStore[Supervisor]):
    """
    Supervisors (les_superviseur.json, flat array)
    """
    kind = "supervisor"
    id_prefix = "sup"

    def __init__(self, path: PathLike = Path("data") / SUPERVISORS_FILE):
        super().__init__(path, FlatCodec(Supervisor))


class EnvironmentStore(RecordStore[Environment]):
    """
    Environment presets (environnements.json, enveloped under "Environnements")
    """
    kind = "environment"
    id_prefix = "env"
    warn_if_empty = True

    def __init__(self, path: PathLike = Path("data") / ENVIRONMENTS_FILE):
        super().__init__(path, EnvelopeCodec(Environment, "Environnements"))

    def build_configuration(
        self,
        environment_id: str,
        start_position: Optional[str] = None,
        difficulty: Optional[str] = None,
        assistance: int = MIN_ASSISTANCE,
        duration: Optional[int] = None,
    ) -> EnvironmentConfiguration:
        """
        Build a run configuration for an environment

        Position and difficulty default to the environment's first option,
        duration to its default duration.

        Raises:
            ReferenceNotFoundError: unknown environment
            InvalidArgumentError: a choice the environment does not offer, or out of range
        """
        environment = self.get_by_id(environment_id)
        if environment is None:
            raise ReferenceNotFoundError(self.kind, environment_id)

        start_position = self._choose(start_position, environment.positions, "start_position")
        difficulty = self._choose(difficulty, environment.difficulties, "difficulty")
        if not MIN_ASSISTANCE <= assistance <= MAX_ASSISTANCE:
            raise InvalidArgumentError("assistance", f"must be between {MIN_ASSISTANCE} and {MAX_ASSISTANCE}")
        if duration is None:
            duration = environment.default_duration
        if duration <= 0:
            raise InvalidArgumentError("duration", "must be a positive number of seconds")

        return EnvironmentConfiguration(
            environment_id=environment.id,
            start_position=start_position,
            difficulty=difficulty,
            assistance=assistance,
            duration=duration,
        )

    @staticmethod
    def _choose(value: Optional[str], options: List[str], argument: str) -> str:
        if value is None:
            return options[0] if options else ""
        if options and value not in options:
            raise InvalidArgumentError(argument, f"'{value}' is not one of {options}")
        return value

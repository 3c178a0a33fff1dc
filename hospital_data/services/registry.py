"""
Single access point to the record stores

Build one StoreRegistry at startup and hand it to whatever needs data:

    registry = StoreRegistry.from_config()
    registry.patients.add(Patient(last_name="Dupont", first_name="Jean"))

Each store is built on first access, exactly once.
"""
import logging
from pathlib import Path
from threading import RLock
from typing import Optional, Union

from hospital_data.core.config import (
    ENVIRONMENTS_FILE,
    PATIENTS_FILE,
    SESSIONS_FILE,
    SUPERVISORS_FILE,
    resolve_data_dir,
)
from hospital_data.database.sessions import SessionStore
from hospital_data.database.storage import EnvironmentStore, PatientStore, SupervisorStore

logger = logging.getLogger(__name__)


class StoreRegistry:
    """
    Lazily builds the four stores over one base directory

    Wiring:
    - sessions are validated against patients and supervisors
    - removing a patient removes its sessions before PatientStore.remove() returns
    """
    def __init__(self, base_dir: Union[str, Path]):
        self._base_dir = Path(base_dir)
        self._lock = RLock()
        self._patients: Optional[PatientStore] = None
        self._supervisors: Optional[SupervisorStore] = None
        self._sessions: Optional[SessionStore] = None
        self._environments: Optional[EnvironmentStore] = None

    @classmethod
    def from_config(cls, mode: Optional[str] = None) -> "StoreRegistry":
        """Build a registry over the configured data directory"""
        return cls(resolve_data_dir(mode))

    @property
    def base_dir(self) -> Path:
        """Directory holding the JSON files (informational)"""
        return self._base_dir

    @property
    def patients(self) -> PatientStore:
        with self._lock:
            if self._patients is None:
                self._patients = PatientStore(self._base_dir / PATIENTS_FILE)
                self._patients.subscribe_removed(self._remove_patient_sessions)
            return self._patients

    @property
    def supervisors(self) -> SupervisorStore:
        with self._lock:
            if self._supervisors is None:
                self._supervisors = SupervisorStore(self._base_dir / SUPERVISORS_FILE)
            return self._supervisors

    @property
    def sessions(self) -> SessionStore:
        with self._lock:
            if self._sessions is None:
                self._sessions = SessionStore(
                    self._base_dir / SESSIONS_FILE,
                    patients=self.patients,
                    supervisors=self.supervisors,
                )
            return self._sessions

    @property
    def environments(self) -> EnvironmentStore:
        with self._lock:
            if self._environments is None:
                self._environments = EnvironmentStore(self._base_dir / ENVIRONMENTS_FILE)
            return self._environments

    def _remove_patient_sessions(self, patient_id: str):
        count = self.sessions.remove_all_by_patient(patient_id)
        if count:
            logger.info("Removed %d session(s) of deleted patient %s", count, patient_id)

"""
Hospital data record store

JSON-file-backed patients, supervisors, sessions and environments with
lazy loading, reader/writer locking and cascading patient deletion.
"""
from hospital_data.core.exceptions import (
    StoreError,
    InvalidArgumentError,
    DuplicateIdError,
    ReferenceNotFoundError,
)
from hospital_data.database import (
    Patient,
    Supervisor,
    Session,
    Environment,
    EnvironmentConfiguration,
    PatientStore,
    SupervisorStore,
    SessionStore,
    EnvironmentStore,
)
from hospital_data.services.registry import StoreRegistry

__all__ = [
    "StoreError",
    "InvalidArgumentError",
    "DuplicateIdError",
    "ReferenceNotFoundError",
    "Patient",
    "Supervisor",
    "Session",
    "Environment",
    "EnvironmentConfiguration",
    "PatientStore",
    "SupervisorStore",
    "SessionStore",
    "EnvironmentStore",
    "StoreRegistry",
]

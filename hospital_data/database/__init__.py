"""
Database module

Contains both record models (schemas) and the file-backed stores.
"""

# Export schemas
from hospital_data.database.schemas import (
    Record,
    Patient,
    Supervisor,
    Session,
    Environment,
    EnvironmentConfiguration,
)

# Export codecs and stores
from hospital_data.database.codec import (
    CodecError,
    FlatCodec,
    EnvelopeCodec,
    read_json,
    write_json,
)
from hospital_data.database.lock import ReadWriteLock
from hospital_data.database.storage import (
    BaseStore,
    RecordStore,
    PatientStore,
    SupervisorStore,
    EnvironmentStore,
)
from hospital_data.database.sessions import SessionStore

__all__ = [
    # Schemas
    "Record",
    "Patient",
    "Supervisor",
    "Session",
    "Environment",
    "EnvironmentConfiguration",
    # Codecs
    "CodecError",
    "FlatCodec",
    "EnvelopeCodec",
    "read_json",
    "write_json",
    # Stores
    "ReadWriteLock",
    "BaseStore",
    "RecordStore",
    "PatientStore",
    "SupervisorStore",
    "EnvironmentStore",
    "SessionStore",
]

"""
Record models

- Attribute names are Python names, aliases are the JSON keys found in existing data files
- Tolerant on read: keys matched case-insensitively, unknown keys ignored,
  missing keys and nulls fall back to defaults
- Canonical on write: to_wire() dumps by alias, nulls omitted, timestamps in UTC
"""
from functools import lru_cache
from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hospital_data.services.utils import is_default_timestamp, to_utc, utc_now


class Record(BaseModel):
    """
    Base for persisted records
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def match_wire_keys(cls, data: Any) -> Any:
        # A null in the file means "use the default", not "invalid record"
        if not isinstance(data, dict):
            return data
        known = _wire_keys(cls)
        matched: Dict[Any, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            if isinstance(key, str):
                key = known.get(key.lower(), key)
            matched.setdefault(key, value)
        return matched

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


@lru_cache(maxsize=None)
def _wire_keys(model: type) -> Dict[str, str]:
    """Lower-cased attribute names and aliases mapped to their exact spelling"""
    keys = {}
    for name, field in model.model_fields.items():
        keys.setdefault(name.lower(), name)
        if field.alias:
            keys[field.alias.lower()] = field.alias
    return keys


def _timestamp_as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or is_default_timestamp(value):
        return value
    return to_utc(value)


class Patient(Record):
    """
    Patient record (les_patients.json)
    """
    id: str                   = Field("", alias="IDpatient", description="Patient identifier (generated when blank)")
    last_name: str            = Field("", alias="Nom", description="Last name")
    first_name: str           = Field("", alias="Prenom", description="First name")
    birth_year: int           = Field(0, alias="date_de_naissance", description="Year of birth")
    sex: str                  = Field("", alias="Sexe", description="Sex")
    pathology: str            = Field("", alias="Pathologie", description="Pathology")
    neglected_side: str       = Field("", alias="CoteNeglige", description="Neglected side")
    created_at: Optional[datetime] = Field(None, alias="DateCreation", description="Creation timestamp (UTC), stamped on add/update")
    follow_up: str            = Field("", alias="SuiviPatient", description="Free-text follow-up note")

    @field_validator("created_at")
    @classmethod
    def created_at_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _timestamp_as_utc(value)


class Supervisor(Record):
    """
    Supervisor record (les_superviseur.json)
    """
    id: str                   = Field("", alias="IdSuperviseur", description="Supervisor identifier (generated when blank)")
    last_name: str            = Field("", alias="Nom", description="Last name")
    first_name: str           = Field("", alias="Prenom", description="First name")
    role: str                 = Field("", alias="fonction", description="Role / function")


class EnvironmentConfiguration(BaseModel):
    """
    Settings chosen for one run of an environment

    Transient value object, never persisted.
    """
    model_config = ConfigDict(populate_by_name=True)
    environment_id: str       = Field("", alias="IdEnvironnement", description="Environment identifier")
    start_position: str       = Field("", alias="PositionDepart", description="Chosen start position")
    difficulty: str           = Field("", alias="NiveauDifficulte", description="Chosen difficulty level")
    assistance: int           = Field(0, alias="NiveauAssistance", description="Assistance level")
    duration: int             = Field(60, alias="Duree", description="Duration in seconds")


class Session(Record):
    """
    Therapy session record (sessions.json)

    No surrogate key: a session is identified by (patient_id, started_at).
    """
    patient_id: str                  = Field("", alias="IDpatient", description="Patient this session belongs to")
    environment_id: str              = Field("", alias="EnvironnementUtilise", description="Environment used")
    start_position: str              = Field("", alias="PositionDepart", description="Start position")
    started_at: Optional[datetime]   = Field(None, alias="DateDebut", description="Start timestamp (UTC)")
    difficulty: str                  = Field("", alias="niveauDifficulte", description="Difficulty level")
    mean_assistance: int             = Field(0, alias="NiveauAssistance_moyen", description="Mean assistance level")
    objectives_reached: str          = Field("", alias="ObjectifsAtteints", description="Objectives reached (free text)")
    objectives_missed: str           = Field("", alias="ObjectifsManques", description="Objectives missed (free text)")
    duration: int                    = Field(0, alias="duree", description="Duration in seconds")
    score: int                       = Field(0, alias="ScoreTotal", description="Total score")
    supervisor_id: str               = Field("", alias="IdSuperviseur", description="Supervisor (optional)")
    reaction_time: float             = Field(0.0, alias="TempsReaction", description="Reaction time")
    pointing_precision: float        = Field(0.0, alias="PrecisionPointage", description="Pointing precision")
    comment: str                     = Field("", alias="Commentaire", description="Comment")

    @field_validator("started_at")
    @classmethod
    def started_at_as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _timestamp_as_utc(value)

    @classmethod
    def from_configuration(cls, configuration: EnvironmentConfiguration, patient_id: str,
                           supervisor_id: str = "") -> "Session":
        """
        Start a session pre-filled from an environment configuration
        """
        return cls(
            patient_id=patient_id,
            supervisor_id=supervisor_id or "",
            environment_id=configuration.environment_id,
            start_position=configuration.start_position,
            difficulty=configuration.difficulty,
            mean_assistance=configuration.assistance,
            duration=configuration.duration,
            started_at=utc_now(),
        )


class Environment(Record):
    """
    Environment preset (environnements.json)
    """
    id: str                   = Field("", alias="IdEnvironnement", description="Environment identifier (generated when blank)")
    name: str                 = Field("", alias="NomEnvironnement", description="Display name")
    description: str          = Field("", alias="Description", description="Description")
    positions: List[str]      = Field(default_factory=list, alias="PositionsDisponibles", description="Available start positions")
    difficulties: List[str]   = Field(default_factory=list, alias="NiveauxDifficulte", description="Available difficulty levels")
    default_duration: int     = Field(60, alias="DureeDefaut", description="Default duration in seconds")
    image_path: str           = Field("", alias="ImagePath", description="Preview image path")

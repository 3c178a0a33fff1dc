"""
Exception hierarchy for the record stores

Exception tree::

    StoreError (base)
    ├── InvalidArgumentError
    ├── DuplicateIdError
    └── ReferenceNotFoundError

"Not found" on update/remove is not an exception: those calls return False.
Load-time IO and parse failures never reach callers (see RecordStore._load).
"""
from typing import Any, Dict, Optional


class StoreError(Exception):
    """
    Base exception for all record store errors

    Attributes:
        message: Human-readable error description
        details: Structured error context
    """
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


class InvalidArgumentError(StoreError, ValueError):
    """Raised when a mutating call receives no entity, or an invalid choice"""
    def __init__(self, argument: str, reason: str = "must not be None"):
        self.argument = argument
        super().__init__(
            message=f"Invalid argument '{argument}': {reason}",
            details={"argument": argument, "reason": reason},
        )


class DuplicateIdError(StoreError):
    """Raised when add() would create a second record with the same id"""
    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(
            message=f"A {kind} with id '{record_id}' already exists",
            details={"kind": kind, "id": record_id},
        )


class ReferenceNotFoundError(StoreError, LookupError):
    """Raised when a record references a patient, supervisor or environment that does not exist"""
    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(
            message=f"{kind.capitalize()} '{record_id}' not found",
            details={"kind": kind, "id": record_id},
        )

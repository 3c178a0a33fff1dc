"""
Utility functions shared by the stores
"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_default_timestamp(value: Optional[datetime]) -> bool:
    """
    True for a missing timestamp or the zero value (0001-01-01T00:00:00)
    """
    if value is None:
        return True
    return value.replace(tzinfo=None) == datetime.min


def to_utc(value: datetime) -> datetime:
    """
    Convert a timestamp to UTC

    Naive timestamps are taken to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_timestamp(value: Optional[datetime]) -> datetime:
    """
    Normalize a timestamp before it is written

    - Missing or zero timestamp is replaced with the current UTC time
    - Naive timestamp is treated as UTC
    - Any other zone is converted to UTC
    """
    if is_default_timestamp(value):
        return utc_now()
    return to_utc(value)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def ids_equal(left: Optional[str], right: Optional[str]) -> bool:
    """Case-insensitive id comparison"""
    if left is None or right is None:
        return left is right
    return left.casefold() == right.casefold()


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"

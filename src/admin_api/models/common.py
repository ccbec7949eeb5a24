"""Shared model helpers."""

import uuid
from typing import Optional


def blank_to_none(value: Optional[str]) -> Optional[str]:
    """Trim a string; empty strings become None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def uuid_or_none(value: Optional[str]) -> Optional[str]:
    """Validate an optional UUID reference; blank clears it."""
    value = blank_to_none(value)
    if value is None:
        return None
    try:
        return str(uuid.UUID(value))
    except ValueError as e:
        raise ValueError("must be a UUID or empty") from e

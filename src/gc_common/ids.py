"""Identifier validation.

All primary keys are PostgreSQL UUIDs. Malformed ids are rejected in the
service layer so they never reach the database as a DataError.
"""

import uuid

from src.gc_common.errors import InvalidIdentifierError


def require_uuid(value: object, field: str = "id") -> str:
    """Return the canonical string form of a UUID or raise InvalidIdentifierError."""
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError, AttributeError):
        raise InvalidIdentifierError(field, value) from None


def optional_uuid(value: object | None, field: str = "id") -> str | None:
    if value is None:
        return None
    return require_uuid(value, field)

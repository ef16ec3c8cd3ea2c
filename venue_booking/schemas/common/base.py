# --- File: venue_booking/schemas/common/base.py ---
"""
Base schema classes with common configuration.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

__all__ = [
    "BaseSchema",
    "SnapshotSchema",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    Every value in the booking core is immutable: a "change" is a new
    instance. Unknown fields are rejected instead of silently dropped.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        # Keep enums as Enum instances to retain full type information;
        # callers can still access `.value` if needed.
        use_enum_values=False,
        str_strip_whitespace=True,
        frozen=True,
        extra="forbid",
    )


class SnapshotSchema(BaseSchema):
    """
    Base for persisted entity snapshots (bookings, payments).

    ``to_record`` produces the flat, JSON-compatible record handed to the
    document store; ``from_record`` parses it back.
    """

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, record: Dict[str, Any]):
        return cls.model_validate(record)

# --- File: venue_booking/models/base.py ---
"""
Declarative base for the booking store.

Snapshots are stored whole as JSON documents; the handful of columns next
to the document exist for lookups (venue/date, status, booking id).
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

Base = declarative_base()


class SnapshotDocumentMixin:
    """JSON document column plus record timestamps."""

    record: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        comment="Full snapshot as produced by to_record()",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        comment="Snapshot creation time",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="Time of the last transition",
    )

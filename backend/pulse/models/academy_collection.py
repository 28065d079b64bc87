"""AcademyCollection ORM — one row per (academy, collection) holding its whole payload.

Invariants:
    - (academy_id, name) is unique: a collection is one unit
    - payload is the JSON-safe output of core/academy_snapshot.py
    - Writes replace the payload entirely (last write wins per collection)

Design Decisions:
    - JSON column over normalized tables: the store contract is full-collection
      get/set, so rows never need partial updates (ADR: store semantics)
    - updated_at kept for operators; nothing in the engine reads it
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pulse.db.base import Base


class AcademyCollection(Base):
    """Persisted academy-scoped collection."""
    __tablename__ = "academy_collections"
    __table_args__ = (
        UniqueConstraint("academy_id", "name", name="uq_academy_collection"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    academy_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True,
    )
    name: Mapped[str] = mapped_column(String(32), nullable=False)
    payload: Mapped[list | dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

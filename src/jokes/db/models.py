"""ORM models — the joke table.

Identifiers are UUID4 strings assigned by the API layer, never reassigned.
All timestamps are UTC.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class JokeRecord(Base):
    """Stored joke document."""

    __tablename__ = "joke"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    joke: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_joke_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<JokeRecord(id={self.id}, created_at={self.created_at})>"

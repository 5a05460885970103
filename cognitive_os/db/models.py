"""
Persistence Models.

One key/value table holds every persisted document (skill graph, session
history). Values are the JSON documents from cognitive_os.core.documents.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for Cognitive OS tables."""


class StateDocument(Base):
    """A named JSON document."""

    __tablename__ = "state_documents"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"StateDocument(key={self.key!r}, updated_at={self.updated_at!r})"

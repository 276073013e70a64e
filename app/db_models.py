"""SQLAlchemy ORM models backing the persistent state."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class SearchRecord(Base):
    """A query a user submitted, kept for the history sidebar."""

    __tablename__ = "searches"
    __table_args__ = (Index("ix_searches_user_created", "user_id", "created_at"),)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    query: Mapped[str] = mapped_column(Text)
    media_type: Mapped[str] = mapped_column(String(16))
    user_id: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def to_payload(self) -> dict[str, object]:
        return {
            "id": self.id,
            "query": self.query,
            "type": self.media_type,
            "userId": self.user_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

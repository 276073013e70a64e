"""Persistence of per-user search history."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import SearchRecord
from ..models import MEDIA_TYPES

logger = logging.getLogger(__name__)


class SearchHistoryStore:
    """Record and list the searches each user has made."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        default_limit: int = 20,
    ) -> None:
        self._session_factory = session_factory
        self._default_limit = default_limit

    async def add(self, user_id: str, query: str, media_type: str) -> SearchRecord:
        query = (query or "").strip()
        if not user_id:
            raise ValueError("A user id is required")
        if not query or not media_type:
            raise ValueError("Query and type are required")
        if media_type not in MEDIA_TYPES:
            raise ValueError(f"Unsupported media type: {media_type}")

        record = SearchRecord(
            query=query,
            media_type=media_type,
            user_id=user_id,
            created_at=datetime.utcnow(),
        )
        async with self._session_factory() as session:
            session.add(record)
            await session.commit()
        logger.debug("Saved %s search %r for user %s", media_type, query, user_id)
        return record

    async def recent(self, user_id: str, limit: int | None = None) -> list[SearchRecord]:
        """Return the user's searches, newest first."""

        resolved_limit = limit if limit and limit > 0 else self._default_limit
        stmt = (
            select(SearchRecord)
            .where(SearchRecord.user_id == user_id)
            .order_by(SearchRecord.created_at.desc(), SearchRecord.id.desc())
            .limit(resolved_limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete(self, user_id: str, search_id: str) -> bool:
        """Delete one of the user's searches. Returns ``False`` if not theirs."""

        async with self._session_factory() as session:
            record = await session.get(SearchRecord, search_id)
            if record is None or record.user_id != user_id:
                return False
            await session.delete(record)
            await session.commit()
            return True

    async def clear(self, user_id: str) -> int:
        async with self._session_factory() as session:
            result = await session.execute(
                delete(SearchRecord).where(SearchRecord.user_id == user_id)
            )
            await session.commit()
            return result.rowcount or 0

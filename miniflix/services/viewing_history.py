"""
MiniFlix viewing history store

One ViewingHistory row per (user, content). Rows are created lazily on the
first write and overwritten on every heartbeat or final write.

Write contract: last write wins, in arrival order. There is no sequence
number or session timestamp guard, so a heartbeat that reaches the server
after the session's final write replaces the final position. Callers get
a full-record overwrite either way, never a partially applied one.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Callable, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models import Content, ViewingHistory
from .catalog import ContentCatalog, content_catalog
from .exceptions import InvalidPlaybackPositionError

logger = logging.getLogger(__name__)


def _require_seconds(field: str, value: float) -> None:
    if value is None or not math.isfinite(value) or value < 0:
        raise InvalidPlaybackPositionError(field, value)


def progress_percent(watch_duration: float, duration: Optional[int]) -> int:
    if not duration or duration <= 0:
        return 0
    return min(100, int(watch_duration / duration * 100))


class ViewingHistoryService:
    """
    Durable upsert layer for viewing records plus the read views built on it
    """

    def __init__(self, catalog: Optional[ContentCatalog] = None):
        self.catalog = catalog or content_catalog

    # ==================== READS ====================

    async def get_record(
        self,
        db: AsyncSession,
        user_id: int,
        content_id: int,
    ) -> Optional[ViewingHistory]:
        result = await db.execute(
            select(ViewingHistory)
            .where(
                ViewingHistory.user_id == user_id,
                ViewingHistory.content_id == content_id,
            )
            .order_by(desc(ViewingHistory.watched_at))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def continue_watching(
        self,
        db: AsyncSession,
        user_id: int,
        limit: Optional[int] = None,
    ) -> List[dict]:
        """
        Incomplete records, most recently watched first, capped at limit
        """
        if limit is None:
            limit = settings.CONTINUE_WATCHING_DEFAULT_LIMIT
        limit = max(0, min(limit, settings.CONTINUE_WATCHING_MAX_LIMIT))
        if limit == 0:
            return []

        result = await db.execute(
            select(ViewingHistory, Content)
            .join(Content, Content.id == ViewingHistory.content_id)
            .where(
                ViewingHistory.user_id == user_id,
                ViewingHistory.is_completed.is_(False),
            )
            .order_by(desc(ViewingHistory.watched_at), desc(ViewingHistory.id))
            .limit(limit)
        )
        return [self._to_item(record, content) for record, content in result.all()]

    async def list_history(self, db: AsyncSession, user_id: int) -> List[dict]:
        """All of a user's records joined with catalog details, newest first"""
        result = await db.execute(
            select(ViewingHistory, Content)
            .join(Content, Content.id == ViewingHistory.content_id)
            .where(ViewingHistory.user_id == user_id)
            .order_by(desc(ViewingHistory.watched_at), desc(ViewingHistory.id))
        )
        return [self._to_item(record, content) for record, content in result.all()]

    @staticmethod
    def _to_item(record: ViewingHistory, content: Content) -> dict:
        return {
            "id": record.id,
            "content_id": record.content_id,
            "last_position": record.last_position,
            "watch_duration": record.watch_duration,
            "is_completed": record.is_completed,
            "watched_at": record.watched_at,
            "title": content.title,
            "thumbnail_url": content.thumbnail_url,
            "duration": content.duration,
            "progress_percent": progress_percent(record.watch_duration, content.duration),
        }

    # ==================== WRITES ====================

    async def upsert_position(
        self,
        db: AsyncSession,
        content_id: int,
        user_id: int,
        position: float,
    ) -> ViewingHistory:
        """
        Heartbeat write: set last_position, bump watched_at.

        A new record starts with watch_duration=0 and is_completed=False.
        An existing record keeps its watch_duration and is_completed; the
        position is overwritten with no monotonicity check.

        Raises:
            InvalidPlaybackPositionError: position < 0
            ContentNotFoundError: unknown content
        """
        _require_seconds("current_position", position)
        await self.catalog.ensure_exists(db, content_id)

        def apply(record: ViewingHistory) -> None:
            record.last_position = position
            record.watched_at = datetime.now(timezone.utc)

        record = await self._write(db, user_id, content_id, apply)
        logger.debug(f"Heartbeat stored: user {user_id} content {content_id} at {position:.1f}s")
        return record

    async def upsert_final(
        self,
        db: AsyncSession,
        content_id: int,
        user_id: int,
        final_position: float,
        watch_duration: float,
        is_completed: bool,
    ) -> ViewingHistory:
        """
        Terminal write: overwrite last_position, watch_duration and
        is_completed, bump watched_at. watch_duration replaces the stored
        value rather than adding to it.

        Raises:
            InvalidPlaybackPositionError: final_position or watch_duration < 0
            ContentNotFoundError: unknown content
        """
        _require_seconds("final_position", final_position)
        _require_seconds("watch_duration", watch_duration)
        await self.catalog.ensure_exists(db, content_id)

        def apply(record: ViewingHistory) -> None:
            record.last_position = final_position
            record.watch_duration = watch_duration
            record.is_completed = bool(is_completed)
            record.watched_at = datetime.now(timezone.utc)

        record = await self._write(db, user_id, content_id, apply)
        logger.info(
            f"🎬 Final position stored: user {user_id} content {content_id} "
            f"at {final_position:.1f}s (completed={record.is_completed})"
        )
        return record

    async def _write(
        self,
        db: AsyncSession,
        user_id: int,
        content_id: int,
        apply: Callable[[ViewingHistory], None],
    ) -> ViewingHistory:
        """
        Read-modify-write of the single record for (user, content).

        Two first writes racing on the unique key: the loser rolls back and
        reapplies its values to the winner's row. Any other integrity
        failure (content deleted after a cached existence check) is
        re-checked against the database and surfaces as ContentNotFoundError.
        """
        record = await self.get_record(db, user_id, content_id)
        if record is None:
            record = ViewingHistory(
                user_id=user_id,
                content_id=content_id,
                last_position=0.0,
                watch_duration=0.0,
                is_completed=False,
            )
            db.add(record)
        apply(record)

        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()

            # a stale cache entry may still vouch for deleted content
            await self.catalog.invalidate(content_id)
            await self.catalog.ensure_exists(db, content_id)

            record = await self.get_record(db, user_id, content_id)
            if record is None:
                raise
            logger.warning(
                f"⚠️ Concurrent first write for user {user_id} content {content_id}, retrying as update"
            )
            apply(record)
            await db.commit()

        await db.refresh(record)
        return record


viewing_history_service = ViewingHistoryService()

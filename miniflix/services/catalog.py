"""
Content catalog lookups used by the playback engine.

The catalog itself is owned elsewhere; the progress services only need to
know whether a content id exists, where its video lives and how long it
is. Those three facts are cached in Redis because every heartbeat checks
existence.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models import Content
from ..redis_client import redis_client, RedisClient
from .exceptions import ContentNotFoundError

logger = logging.getLogger(__name__)


def stream_cache_key(content_id: int) -> str:
    return f"content:stream:{content_id}"


def build_streaming_url(video_url: str, base_url: Optional[str] = None) -> str:
    """Prefix relative video paths with the media origin, leave absolute URLs alone."""
    base_url = settings.MEDIA_BASE_URL if base_url is None else base_url
    if not video_url or not base_url or "://" in video_url:
        return video_url or ""
    return f"{base_url.rstrip('/')}/{video_url.lstrip('/')}"


class ContentCatalog:
    def __init__(self, cache: Optional[RedisClient] = None, cache_enabled: Optional[bool] = None):
        self.cache = cache or redis_client
        self.cache_enabled = settings.CACHE_ENABLED if cache_enabled is None else cache_enabled

    async def get_stream_source(self, db: AsyncSession, content_id: int) -> Dict[str, Any]:
        """
        Return {content_id, video_url, duration} for a content id.

        Raises:
            ContentNotFoundError: if no catalog entry exists
        """
        key = stream_cache_key(content_id)

        if self.cache_enabled:
            cached = await self.cache.get(key)
            if cached:
                return cached

        result = await db.execute(
            select(Content.id, Content.video_url, Content.duration)
            .where(Content.id == content_id)
        )
        row = result.first()
        if row is None:
            raise ContentNotFoundError(content_id)

        source = {
            "content_id": row.id,
            "video_url": row.video_url or "",
            "duration": row.duration or 0,
        }

        if self.cache_enabled:
            await self.cache.set(key, source, expire=settings.CONTENT_CACHE_EXPIRATION)

        return source

    async def ensure_exists(self, db: AsyncSession, content_id: int) -> None:
        await self.get_stream_source(db, content_id)

    async def invalidate(self, content_id: int) -> bool:
        if not self.cache_enabled:
            return False
        return await self.cache.delete(stream_cache_key(content_id))


content_catalog = ContentCatalog()

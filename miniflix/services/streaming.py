"""
Streaming resolver

Hands a watch session its playable URL and the offset to resume from.
Resolution is read-only: starting a session never creates or touches a
viewing record.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .catalog import ContentCatalog, content_catalog, build_streaming_url
from .viewing_history import ViewingHistoryService, viewing_history_service

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreamingGrant:
    content_id: int
    streaming_url: str
    duration: int
    resume_position: float

    def to_response(self) -> dict:
        data = asdict(self)
        data["last_position"] = data.pop("resume_position")
        return data


class StreamingResolver:
    def __init__(
        self,
        catalog: Optional[ContentCatalog] = None,
        history: Optional[ViewingHistoryService] = None,
    ):
        self.catalog = catalog or content_catalog
        self.history = history or viewing_history_service

    async def resolve(self, db: AsyncSession, content_id: int, user_id: int) -> StreamingGrant:
        """
        Raises:
            ContentNotFoundError: unknown content
        """
        source = await self.catalog.get_stream_source(db, content_id)
        record = await self.history.get_record(db, user_id, content_id)
        resume_position = record.last_position if record else 0

        logger.info(
            f"▶️ Stream resolved: user {user_id} content {content_id} "
            f"resume at {resume_position:.1f}s"
        )

        return StreamingGrant(
            content_id=source["content_id"],
            streaming_url=build_streaming_url(source["video_url"]),
            duration=source["duration"],
            resume_position=resume_position,
        )


streaming_resolver = StreamingResolver()

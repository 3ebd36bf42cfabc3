import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from miniflix.database import AsyncSessionLocal
from miniflix.models import Content, User, ViewingHistory
from miniflix.player.api_client import StreamGrant

from sqlalchemy import func, select

USER_ID = 1
OTHER_USER_ID = 2
INACTIVE_USER_ID = 3
FEATURE_ID = 10      # 1200s feature
EPISODE_ID = 11      # 600s episode
SHORT_ID = 12        # 300s short, absolute video URL
MISSING_ID = 999


def run(coro: Awaitable) -> Any:
    return asyncio.run(coro)


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


def with_db(fn: Callable) -> Any:
    async def _inner():
        async with AsyncSessionLocal() as db:
            return await fn(db)

    return run(_inner())


async def seed_catalog() -> Dict[str, int]:
    async with AsyncSessionLocal() as db:
        db.add_all([
            User(id=USER_ID, email="viewer@miniflix.test", display_name="Viewer"),
            User(id=OTHER_USER_ID, email="other@miniflix.test", display_name="Other"),
            User(id=INACTIVE_USER_ID, email="gone@miniflix.test", is_active=False),
            Content(id=FEATURE_ID, title="Feature", video_url="/videos/feature.mp4",
                    thumbnail_url="/thumbs/feature.jpg", duration=1200, release_year=2021),
            Content(id=EPISODE_ID, title="Episode", video_url="/videos/episode.mp4",
                    thumbnail_url="/thumbs/episode.jpg", duration=600, release_year=2022),
            Content(id=SHORT_ID, title="Short", video_url="https://cdn.example.com/short.mp4",
                    duration=300, release_year=2023),
        ])
        await db.commit()
    return {
        "user_id": USER_ID,
        "other_user_id": OTHER_USER_ID,
        "inactive_user_id": INACTIVE_USER_ID,
        "feature_id": FEATURE_ID,
        "episode_id": EPISODE_ID,
        "short_id": SHORT_ID,
    }


async def fetch_records(user_id: int, content_id: int) -> List[ViewingHistory]:
    async with AsyncSessionLocal() as db:
        result = await db.execute(
            select(ViewingHistory).where(
                ViewingHistory.user_id == user_id,
                ViewingHistory.content_id == content_id,
            )
        )
        return list(result.scalars().all())


async def count_records() -> int:
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(func.count()).select_from(ViewingHistory))
        return result.scalar_one()


class ManualTimer:
    """Stand-in for asyncio.sleep; sleepers wake only when fire() is called."""

    def __init__(self) -> None:
        self._waiters: List[Tuple[float, asyncio.Future]] = []

    @property
    def pending(self) -> List[float]:
        return [delay for delay, fut in self._waiters if not fut.done()]

    async def sleep(self, delay: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        entry = (delay, fut)
        self._waiters.append(entry)
        try:
            await fut
        finally:
            self._waiters.remove(entry)

    async def fire(self) -> None:
        for _, fut in list(self._waiters):
            if not fut.done():
                fut.set_result(None)
        await settle()


class FakePlaybackApi:
    def __init__(self, grant: Optional[StreamGrant] = None, fail: bool = False) -> None:
        self.grant = grant or StreamGrant(
            content_id=FEATURE_ID,
            streaming_url="https://media.miniflix.test/videos/feature.mp4",
            duration=1200,
            resume_position=0,
        )
        self.fail = fail
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[Tuple] = []

    def named(self, name: str) -> List[Tuple]:
        return [call for call in self.calls if call[0] == name]

    async def _record(self, call: Tuple) -> None:
        if self.gate is not None:
            await self.gate.wait()
        self.calls.append(call)
        if self.fail:
            raise ConnectionError("network unreachable")

    async def request_streaming(self, content_id: int) -> StreamGrant:
        self.calls.append(("stream", content_id))
        return self.grant

    async def update_playback(self, content_id, current_position, watch_duration) -> None:
        await self._record(("playback", content_id, current_position, watch_duration))

    async def save_final_position(self, content_id, final_position, watch_duration, is_completed) -> None:
        await self._record(("final-position", content_id, final_position, watch_duration, is_completed))

    async def update_history(self, content_id, final_position, watch_duration, is_completed) -> None:
        await self._record(("history", content_id, final_position, watch_duration, is_completed))

import httpx
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .config import player_settings

logger = logging.getLogger(__name__)


class PlaybackApiError(Exception):
    def __init__(self, status_code: int, detail: Any = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Playback API responded {status_code}: {detail}")


@dataclass(frozen=True)
class StreamGrant:
    content_id: int
    streaming_url: str
    duration: int
    resume_position: float


class PlaybackApiClient:
    """
    HTTP client for the playback progress endpoints.

    Usage:
        async with PlaybackApiClient(token) as api:
            grant = await api.request_streaming(42)
    """

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url or player_settings.API_BASE_URL,
            timeout=timeout or player_settings.REQUEST_TIMEOUT_SECONDS,
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

    async def __aenter__(self) -> "PlaybackApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    @staticmethod
    def _check(response: httpx.Response) -> Dict[str, Any]:
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail")
            except ValueError:
                detail = response.text
            raise PlaybackApiError(response.status_code, detail)
        return response.json()

    async def request_streaming(self, content_id: int) -> StreamGrant:
        response = await self.client.get(f"/contents/{content_id}/stream")
        data = self._check(response)
        return StreamGrant(
            content_id=data.get("content_id", content_id),
            streaming_url=data["streaming_url"],
            duration=data.get("duration") or 0,
            resume_position=data.get("last_position") or 0,
        )

    async def update_playback(
        self,
        content_id: int,
        current_position: float,
        watch_duration: float,
    ) -> None:
        response = await self.client.post(
            f"/contents/{content_id}/playback",
            json={
                "content_id": content_id,
                "current_position": current_position,
                "watch_duration": watch_duration,
            },
        )
        self._check(response)

    async def save_final_position(
        self,
        content_id: int,
        final_position: float,
        watch_duration: float,
        is_completed: bool,
    ) -> None:
        response = await self.client.post(
            f"/contents/{content_id}/final-position",
            json={
                "content_id": content_id,
                "final_position": final_position,
                "watch_duration": watch_duration,
                "is_completed": is_completed,
            },
        )
        self._check(response)

    async def update_history(
        self,
        content_id: int,
        final_position: float,
        watch_duration: float,
        is_completed: bool,
    ) -> None:
        response = await self.client.post(
            f"/contents/{content_id}/history",
            json={
                "content_id": content_id,
                "final_position": final_position,
                "watch_duration": watch_duration,
                "is_completed": is_completed,
            },
        )
        self._check(response)

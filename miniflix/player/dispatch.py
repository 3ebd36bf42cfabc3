import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from .config import player_settings

logger = logging.getLogger(__name__)


class BestEffortDispatcher:
    """
    Runs fire-and-forget progress writes as tracked asyncio tasks.

    Drop policy:
    - every write is attempted exactly once; failures are logged and
      counted, never retried and never raised to the caller
    - when max_pending writes are already in flight, a new write is
      dropped without being sent
    - callers never await a write; navigation and playback proceed
      regardless of outcome
    """

    def __init__(self, max_pending: Optional[int] = None):
        self.max_pending = max_pending or player_settings.MAX_PENDING_WRITES
        self._pending: Set[asyncio.Task] = set()
        self.sent = 0
        self.failed = 0
        self.dropped = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(self, send: Callable[[], Awaitable], label: str) -> Optional[asyncio.Task]:
        if len(self._pending) >= self.max_pending:
            self.dropped += 1
            logger.warning(f"⚠️ Dropping {label} write: {len(self._pending)} writes already in flight")
            return None

        task = asyncio.get_running_loop().create_task(self._run(send, label))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _run(self, send: Callable[[], Awaitable], label: str) -> None:
        try:
            await send()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.failed += 1
            logger.warning(f"⚠️ {label} write failed and was dropped: {e}")
            return
        self.sent += 1

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight writes. Used on process shutdown and in tests."""
        if self._pending:
            await asyncio.wait(set(self._pending), timeout=timeout)

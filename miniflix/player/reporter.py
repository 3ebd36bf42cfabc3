"""
Heartbeat progress reporting while content plays.

Each tick sends the player's current position plus a watch-duration delta
equal to the interval length. The delta is a fixed approximation, not the
measured wall-clock time since the previous tick. A lost heartbeat leaves
the stored position at most one interval stale.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from .config import player_settings
from .dispatch import BestEffortDispatcher
from .session import PlaybackClock, PlaybackEvent

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ReporterState(str, Enum):
    IDLE = "idle"
    PLAYING = "playing"
    SEEKING = "seeking"


class PositionReporter:
    """
    Idle -> Playing on play; Playing -> Idle on pause or stop;
    any -> Seeking on seek start; Seeking -> Playing (or Idle when paused)
    on seek end.

    Only the Playing state has a live timer. Entering Seeking cancels it, so
    no mid-seek position is ever sent, and leaving Seeking starts a new timer
    that waits a full interval before the first tick.
    """

    def __init__(
        self,
        clock: PlaybackClock,
        api,
        dispatcher: BestEffortDispatcher,
        interval: Optional[float] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.clock = clock
        self.session = clock.session
        self.api = api
        self.dispatcher = dispatcher
        self.interval = interval or player_settings.HEARTBEAT_INTERVAL_SECONDS
        self._sleep = sleep or asyncio.sleep

        self.state = ReporterState.IDLE
        self.heartbeats = 0
        self._timer: Optional[asyncio.Task] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ==================== LIFECYCLE ====================

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.clock.subscribe(self._on_event)
        if self.session.is_seeking:
            self.state = ReporterState.SEEKING
        elif self.session.is_playing:
            self._enter_playing()

    def stop(self) -> None:
        """Unmount: cancel the scheduled tick outright and stop listening."""
        self._cancel_timer()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.state = ReporterState.IDLE

    # ==================== TRANSITIONS ====================

    def _on_event(self, event: PlaybackEvent) -> None:
        if event is PlaybackEvent.SEEK_START:
            self._cancel_timer()
            self.state = ReporterState.SEEKING
        elif event is PlaybackEvent.SEEK_END:
            if self.session.is_playing:
                self._enter_playing()
            else:
                self.state = ReporterState.IDLE
        elif event is PlaybackEvent.PLAY:
            if not self.session.is_seeking:
                self._enter_playing()
        elif event is PlaybackEvent.PAUSE:
            # a heartbeat already handed to the dispatcher still goes out
            self._cancel_timer()
            if self.state is ReporterState.PLAYING:
                self.state = ReporterState.IDLE

    def _enter_playing(self) -> None:
        self.state = ReporterState.PLAYING
        if self._timer is None or self._timer.done():
            self._timer = asyncio.get_running_loop().create_task(self._run())

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    # ==================== TIMER ====================

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            if self.session.is_seeking or not self.session.is_playing:
                return
            self._tick()

    def _tick(self) -> None:
        content_id = self.session.content_id
        position = self.session.current_time
        interval = self.interval
        self.heartbeats += 1

        logger.debug(f"💓 Heartbeat #{self.heartbeats} for content {content_id} at {position:.1f}s")

        self.dispatcher.submit(
            lambda: self.api.update_playback(content_id, position, interval),
            label="heartbeat",
        )

import logging
from typing import Optional

from .api_client import StreamGrant
from .config import player_settings, PlayerSettings
from .dispatch import BestEffortDispatcher
from .finalizer import FinalProgress, SessionFinalizer
from .reporter import PositionReporter, Sleep
from .session import PlaybackClock, PlaybackSession

logger = logging.getLogger(__name__)


class WatchSessionController:
    """
    Watch-view controller. Owns the PlaybackSession for one mount/unmount
    cycle and hands the same session to the reporter and the finalizer.

    Usage:
        controller = WatchSessionController(content_id, api)
        grant = await controller.mount()
        player.load(grant.streaming_url)
        ...player calls controller.clock.time_update(...) etc.
        controller.on_ready()      # player loaded the media
        controller.unmount()       # navigation away or page unload
    """

    def __init__(
        self,
        content_id: int,
        api,
        settings: Optional[PlayerSettings] = None,
        dispatcher: Optional[BestEffortDispatcher] = None,
        sleep: Optional[Sleep] = None,
    ):
        self.content_id = content_id
        self.api = api
        self.settings = settings or player_settings
        self.dispatcher = dispatcher or BestEffortDispatcher(self.settings.MAX_PENDING_WRITES)
        self._sleep = sleep

        self.grant: Optional[StreamGrant] = None
        self.session: Optional[PlaybackSession] = None
        self.clock: Optional[PlaybackClock] = None
        self.reporter: Optional[PositionReporter] = None
        self.finalizer: Optional[SessionFinalizer] = None

    @property
    def is_mounted(self) -> bool:
        return self.session is not None and not self.finalizer.fired

    async def mount(self) -> StreamGrant:
        """
        Resolve the stream and build the session. Resolution errors
        propagate: there is nothing to play without a grant.
        """
        if self.session is not None:
            raise RuntimeError(f"watch session for content {self.content_id} already mounted")

        grant = await self.api.request_streaming(self.content_id)
        self.grant = grant

        self.session = PlaybackSession(content_id=self.content_id)
        self.clock = PlaybackClock(self.session)
        self.reporter = PositionReporter(
            self.clock,
            self.api,
            self.dispatcher,
            interval=self.settings.HEARTBEAT_INTERVAL_SECONDS,
            sleep=self._sleep,
        )
        self.finalizer = SessionFinalizer(
            self.session,
            self.api,
            self.dispatcher,
            threshold=self.settings.COMPLETION_THRESHOLD,
        )
        self.reporter.start()

        logger.info(
            f"🎬 Watch session mounted for content {self.content_id}, "
            f"resume offset {grant.resume_position:.1f}s"
        )
        return grant

    def on_ready(self, duration: Optional[float] = None) -> None:
        """Media loaded: seek to the resume offset, then start playback."""
        if duration is not None:
            self.clock.set_duration(duration)
        if self.grant.resume_position > 0:
            self.clock.seek_to(self.grant.resume_position)
        self.clock.play()

    def unmount(self) -> Optional[FinalProgress]:
        if self.session is None or self.finalizer.fired:
            return None
        self.reporter.stop()
        return self.finalizer.finalize()

    # best effort: the runtime may not deliver the writes before exit
    on_page_unload = unmount

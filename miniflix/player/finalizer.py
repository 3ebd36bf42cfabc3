import logging
import math
from dataclasses import dataclass
from typing import Optional

from .config import player_settings
from .dispatch import BestEffortDispatcher
from .session import PlaybackSession

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinalProgress:
    final_position: float
    watch_duration: float
    is_completed: bool


def compute_final_progress(
    position: float,
    duration: float,
    threshold: Optional[float] = None,
) -> Optional[FinalProgress]:
    """
    Terminal progress for a session, or None when the duration is zero or
    unknown and nothing should be written.

    watch_duration mirrors the final position; it is not a sum of the
    seconds actually played.
    """
    threshold = player_settings.COMPLETION_THRESHOLD if threshold is None else threshold
    if not duration or not math.isfinite(duration) or duration <= 0:
        return None

    position = max(0.0, float(position or 0.0))
    return FinalProgress(
        final_position=position,
        watch_duration=position,
        is_completed=position > threshold * duration,
    )


class SessionFinalizer:
    """
    Flushes one terminal write when the watch view is torn down.

    finalize() acts on its first call only, so in-app navigation and a
    later page unload cannot both write.
    """

    def __init__(
        self,
        session: PlaybackSession,
        api,
        dispatcher: BestEffortDispatcher,
        threshold: Optional[float] = None,
    ):
        self.session = session
        self.api = api
        self.dispatcher = dispatcher
        self.threshold = threshold
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def finalize(self) -> Optional[FinalProgress]:
        if self._fired:
            return None
        self._fired = True

        content_id = self.session.content_id
        progress = compute_final_progress(
            self.session.current_time,
            self.session.duration,
            self.threshold,
        )
        if progress is None:
            logger.info(f"⏭️ Skipping final write for content {content_id}: duration unknown")
            return None

        logger.info(
            f"⏹️ Final progress for content {content_id}: {progress.final_position:.1f}s "
            f"of {self.session.duration:.1f}s (completed={progress.is_completed})"
        )

        # no ordering against an in-flight heartbeat; each write is a full overwrite
        self.dispatcher.submit(
            lambda: self.api.save_final_position(
                content_id,
                progress.final_position,
                progress.watch_duration,
                progress.is_completed,
            ),
            label="final-position",
        )
        self.dispatcher.submit(
            lambda: self.api.update_history(
                content_id,
                progress.final_position,
                progress.watch_duration,
                progress.is_completed,
            ),
            label="history",
        )
        return progress

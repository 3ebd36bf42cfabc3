"""
Player-side playback progress engine.

A WatchSessionController owns one PlaybackSession for the lifetime of a
watch view. The PositionReporter and SessionFinalizer receive that session
explicitly and push progress through a BestEffortDispatcher.
"""
from .api_client import PlaybackApiClient, PlaybackApiError, StreamGrant
from .controller import WatchSessionController
from .dispatch import BestEffortDispatcher
from .finalizer import FinalProgress, SessionFinalizer, compute_final_progress
from .reporter import PositionReporter, ReporterState
from .session import PlaybackClock, PlaybackEvent, PlaybackSession

__all__ = [
    "BestEffortDispatcher",
    "FinalProgress",
    "PlaybackApiClient",
    "PlaybackApiError",
    "PlaybackClock",
    "PlaybackEvent",
    "PlaybackSession",
    "PositionReporter",
    "ReporterState",
    "SessionFinalizer",
    "StreamGrant",
    "WatchSessionController",
    "compute_final_progress",
]

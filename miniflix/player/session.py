"""Transient playback state for one watch view."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass
class PlaybackSession:
    """
    Ephemeral per-view state. Created on mount, seeded once with the resume
    offset, discarded on unmount.
    """
    content_id: int
    current_time: float = 0.0
    duration: float = 0.0
    is_playing: bool = False
    playback_rate: float = 1.0
    is_seeking: bool = False


class PlaybackEvent(str, Enum):
    PLAY = "play"
    PAUSE = "pause"
    SEEK_START = "seek_start"
    SEEK_END = "seek_end"


Listener = Callable[[PlaybackEvent], None]


class PlaybackClock:
    """
    Applies player events to a PlaybackSession and notifies listeners of
    play/pause/seek transitions. Time updates are silent.
    """

    def __init__(self, session: PlaybackSession):
        self.session = session
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: PlaybackEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _clamp(self, position: float) -> float:
        position = max(0.0, float(position))
        if self.session.duration > 0:
            position = min(position, self.session.duration)
        return position

    # ==================== PLAYER REPORTS ====================

    def set_duration(self, duration: float) -> None:
        self.session.duration = max(0.0, float(duration or 0.0))

    def time_update(self, position: float) -> None:
        # progress callbacks during a scrub would overwrite the seek target
        if self.session.is_seeking:
            return
        self.session.current_time = self._clamp(position)

    def seek_to(self, position: float) -> None:
        """Programmatic jump (resume offset); not a user scrub."""
        self.session.current_time = self._clamp(position)

    def set_rate(self, rate: float) -> None:
        if rate <= 0:
            raise ValueError(f"playback rate must be positive, got {rate}")
        self.session.playback_rate = rate

    # ==================== TRANSITIONS ====================

    def play(self) -> None:
        if self.session.is_playing:
            return
        self.session.is_playing = True
        self._emit(PlaybackEvent.PLAY)

    def pause(self) -> None:
        if not self.session.is_playing:
            return
        self.session.is_playing = False
        self._emit(PlaybackEvent.PAUSE)

    def begin_seek(self) -> None:
        if self.session.is_seeking:
            return
        self.session.is_seeking = True
        self._emit(PlaybackEvent.SEEK_START)

    def end_seek(self, position: float) -> None:
        # some players report only the end of a seek; the target still lands
        self.session.current_time = self._clamp(position)
        if not self.session.is_seeking:
            return
        self.session.is_seeking = False
        self._emit(PlaybackEvent.SEEK_END)

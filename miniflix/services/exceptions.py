"""Errors raised by the playback progress services."""


class PlaybackServiceError(Exception):
    """Base class for errors the API layer maps to client responses."""


class ContentNotFoundError(PlaybackServiceError, LookupError):
    """Raised when a content id does not reference an existing catalog entry."""

    def __init__(self, content_id: int):
        self.content_id = content_id
        super().__init__(f"Content {content_id} not found")


class InvalidPlaybackPositionError(PlaybackServiceError, ValueError):
    """Raised when a position or watch duration is negative or not a number."""

    def __init__(self, field: str, value: float):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be a non-negative number of seconds, got {value}")

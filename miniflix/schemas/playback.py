from pydantic import BaseModel, Field, AliasChoices
from typing import Optional
from datetime import datetime


class StreamingResponse(BaseModel):
    success: bool = True
    content_id: int
    streaming_url: str
    duration: int
    last_position: float


class PlaybackPositionRequest(BaseModel):
    """Heartbeat body sent every interval while playing"""
    content_id: int
    current_position: float
    watch_duration: float = 0


class FinalPositionRequest(BaseModel):
    """Terminal write sent once at session teardown"""
    content_id: int
    final_position: float = Field(
        validation_alias=AliasChoices("final_position", "last_position")
    )
    watch_duration: float
    is_completed: bool = False


class ActionResponse(BaseModel):
    success: bool = True


class ViewingHistoryItem(BaseModel):
    id: int
    content_id: int
    last_position: float
    watch_duration: float
    is_completed: bool
    watched_at: Optional[datetime] = None

    title: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[int] = None
    progress_percent: int = 0

    class Config:
        from_attributes = True

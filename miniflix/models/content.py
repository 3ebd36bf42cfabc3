# miniflix/models/content.py
from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class Content(Base):
    """
    Catalog entry

    Only the fields the playback engine needs are mapped here: existence,
    the video location and the canonical duration.
    """
    __tablename__ = "contents"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    video_url = Column(String(500), nullable=True)
    duration = Column(Integer, nullable=True)  # Duration in SECONDS
    release_year = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    viewing_histories = relationship(
        "ViewingHistory",
        back_populates="content",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Content(id={self.id}, title='{self.title}')>"

from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, Boolean, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class ViewingHistory(Base):
    """Viewing record - one row per (user, content), source of the resume offset"""
    __tablename__ = "viewing_histories"
    __table_args__ = (
        UniqueConstraint("user_id", "content_id", name="uq_viewing_histories_user_content"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content_id = Column(Integer, ForeignKey("contents.id", ondelete="CASCADE"), nullable=False, index=True)

    last_position = Column(Float, default=0.0, nullable=False)  # seconds
    watch_duration = Column(Float, default=0.0, nullable=False)  # seconds, position proxy
    is_completed = Column(Boolean, default=False, nullable=False, index=True)

    watched_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    user = relationship("User", back_populates="viewing_histories", foreign_keys=[user_id])
    content = relationship("Content", back_populates="viewing_histories", foreign_keys=[content_id])

    def __repr__(self):
        return (
            f"<ViewingHistory(user={self.user_id}, content={self.content_id}, "
            f"position={self.last_position}, completed={self.is_completed})>"
        )

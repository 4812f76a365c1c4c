"""Comment model."""

from sqlalchemy import Column, DateTime, ForeignKey, String, Text
import uuid

from database import Base, utcnow


class Comment(Base):
    """Comment on a video. Replies point at a top-level comment via parent_id."""

    __tablename__ = "comments"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    content = Column(Text, nullable=False)
    owner_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    video_id = Column(String, ForeignKey("videos.id"), nullable=False, index=True)
    parent_id = Column(String, ForeignKey("comments.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

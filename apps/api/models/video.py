"""Video model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
import uuid

from database import Base, utcnow


class Video(Base):
    """Uploaded video; media files live in external storage."""

    __tablename__ = "videos"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    video_url = Column(String, nullable=True)
    thumbnail_url = Column(String, nullable=True)
    duration_s = Column(Integer, nullable=False, default=0)
    views = Column(Integer, nullable=False, default=0)
    is_public = Column(Boolean, nullable=False, default=True, index=True)
    is_nsfw = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

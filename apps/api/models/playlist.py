"""Playlist model."""

from sqlalchemy import Column, DateTime, ForeignKey, JSON, String, Text
import uuid

from database import Base, utcnow


class Playlist(Base):
    """User-owned ordered list of videos."""

    __tablename__ = "playlists"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    visibility = Column(String, nullable=False, default="private", index=True)
    video_ids = Column(JSON, nullable=False, default=lambda: [])
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, index=True)

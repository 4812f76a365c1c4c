"""User model."""

from sqlalchemy import Boolean, Column, DateTime, JSON, String
import uuid

from database import Base, utcnow


class User(Base):
    """Registered account; doubles as a channel."""

    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    handle = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    display_name = Column(String, nullable=False)
    avatar_url = Column(String, nullable=True)
    cover_image_url = Column(String, nullable=True)
    password_hash = Column(String, nullable=True)
    refresh_token_hash = Column(String, nullable=True)
    reset_token_hash = Column(String, nullable=True)
    reset_token_expires_at = Column(DateTime(timezone=True), nullable=True)
    # Most recent first: [{"video_id": ..., "watched_at": iso8601}, ...]
    watch_history = Column(JSON, nullable=False, default=lambda: [])
    upload_terms_accepted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

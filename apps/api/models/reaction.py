"""Reaction (like/dislike) model."""

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
import uuid

from database import Base, utcnow


class Reaction(Base):
    """One like or dislike by an actor on a video, comment or tweet."""

    __tablename__ = "reactions"
    __table_args__ = (
        UniqueConstraint("actor_id", "target_kind", "target_id", name="uq_reactions_actor_target"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    actor_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    target_kind = Column(String, nullable=False)
    target_id = Column(String, nullable=False, index=True)
    kind = Column(String, nullable=False, default="like")
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

"""Search history model backing the top-searches list."""

from sqlalchemy import Column, DateTime, Integer, String
import uuid

from database import Base, utcnow


class SearchQuery(Base):
    """Normalized search text with the number of times it was searched."""

    __tablename__ = "search_queries"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    search_text = Column(String, unique=True, nullable=False, index=True)
    count = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

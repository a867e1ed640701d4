"""Saved-for-later entries."""
from sqlalchemy import Column, DateTime, String

from watchsignal_recommendation_service.models.base import Base, utc_now


class WatchlistEntry(Base):
    """Presence of a row is the signal; there is nothing else to it."""

    __tablename__ = "watchlist_entries"

    user_id = Column(String(64), primary_key=True)
    content_id = Column(String(64), primary_key=True)

    added_at = Column(DateTime, default=utc_now, nullable=False)

    def __repr__(self):
        return f"<WatchlistEntry(user_id='{self.user_id}', content_id='{self.content_id}')>"

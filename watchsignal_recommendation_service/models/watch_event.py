"""Append-only playback event log."""
from sqlalchemy import Column, DateTime, Index, Integer, String

from watchsignal_recommendation_service.models.base import Base, utc_now

EVENT_PLAY = "play"
EVENT_PAUSE = "pause"
EVENT_RESUME = "resume"
EVENT_SEEK = "seek"
EVENT_COMPLETE = "complete"

EVENT_KINDS = (EVENT_PLAY, EVENT_PAUSE, EVENT_RESUME, EVENT_SEEK, EVENT_COMPLETE)


class WatchEvent(Base):
    """One playback event. Rows are never updated or deleted by the engine.

    ``user_id`` is NULL for anonymous viewers.
    """

    __tablename__ = "watch_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=True)
    content_id = Column(String(64), nullable=False)
    event_type = Column(String(20), nullable=False)
    elapsed_seconds = Column(Integer, nullable=False, default=0)
    session_id = Column(String(64), nullable=True)

    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        Index("idx_event_type_created", "event_type", "created_at"),
        Index("idx_event_user", "user_id"),
        Index("idx_event_content", "content_id"),
    )

    def __repr__(self):
        return (
            f"<WatchEvent(id={self.id}, user_id={self.user_id!r}, content_id='{self.content_id}', "
            f"event_type='{self.event_type}')>"
        )

"""Per-(user, content) playback progress."""
from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from watchsignal_recommendation_service.models.base import Base, utc_now


class WatchProgress(Base):
    """Stores how far a user got through one content item.

    One row per (user, content) pair. ``completed`` is monotonic: once
    true it never goes back to false.
    """

    __tablename__ = "watch_progress"

    # Composite primary key
    user_id = Column(String(64), primary_key=True)
    content_id = Column(String(64), primary_key=True)

    progress_seconds = Column(Integer, nullable=False, default=0)
    total_seconds = Column(Integer, nullable=True)
    completed = Column(Boolean, nullable=False, default=False)

    last_watched = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        Index("idx_progress_content", "content_id"),
        Index("idx_progress_last_watched", "user_id", "last_watched"),
    )

    @property
    def progress_percentage(self) -> float:
        """Fraction of the item watched, in [0, 1]."""
        if not self.total_seconds:
            return 0.0
        return min(max((self.progress_seconds or 0) / self.total_seconds, 0.0), 1.0)

    def __repr__(self):
        return (
            f"<WatchProgress(user_id='{self.user_id}', content_id='{self.content_id}', "
            f"progress={self.progress_percentage:.2f}, completed={self.completed})>"
        )

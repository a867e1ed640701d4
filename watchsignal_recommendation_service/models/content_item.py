"""Catalog entry as seen by the recommendation engine."""
from sqlalchemy import JSON, Column, DateTime, Index, Integer, String

from watchsignal_recommendation_service.models.base import Base, utc_now

PUBLISHED = "published"
CONTENT_STATUSES = ("draft", PUBLISHED, "archived")


class ContentItem(Base):
    """Catalog entry.

    Mirrors the fields of the catalog service that the scorers need.
    Only items with ``status == 'published'`` are recommendable.
    """
    __tablename__ = "content_items"

    content_id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    genres = Column(JSON, nullable=True)
    director = Column(String(255), nullable=True)
    cast_members = Column(JSON, nullable=True)
    studio_label = Column(String(255), nullable=True)
    release_year = Column(Integer, nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default=PUBLISHED)

    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        Index("idx_content_status", "status"),
        Index("idx_content_release_year", "status", "release_year"),
    )

    @property
    def genre_set(self) -> set[str]:
        return set(self.genres or [])

    @property
    def cast_set(self) -> set[str]:
        return set(self.cast_members or [])

    @property
    def is_published(self) -> bool:
        return self.status == PUBLISHED

    def __repr__(self):
        return f"<ContentItem(content_id='{self.content_id}', title='{self.title}', status='{self.status}')>"

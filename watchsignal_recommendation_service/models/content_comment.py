"""User comments and star ratings."""
from sqlalchemy import Column, DateTime, Index, Integer, String, Text

from watchsignal_recommendation_service.models.base import Base, utc_now


class ContentComment(Base):
    """A comment, a rating, or both.

    Every row counts as a comment for engagement; rows with a ``rating``
    (1-5 stars) also count as ratings.
    """

    __tablename__ = "content_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False)
    content_id = Column(String(64), nullable=False)
    rating = Column(Integer, nullable=True)
    body = Column(Text, nullable=True)
    likes_count = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=utc_now, nullable=False)

    __table_args__ = (
        Index("idx_comment_user", "user_id"),
        Index("idx_comment_content", "content_id"),
    )

    def __repr__(self):
        return f"<ContentComment(id={self.id}, user_id='{self.user_id}', rating={self.rating})>"

"""Service for trending content (play counts in a recent window)."""
from datetime import UTC, datetime, timedelta
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.config import get_default_limit, get_trending_window_days
from watchsignal_recommendation_service.models.base import as_utc
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import CandidateItem, SOURCE_TRENDING
from watchsignal_recommendation_service.repos import CatalogRepository, SignalRepository

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class TrendingService:
    """Rank published items by the number of plays in the last few days."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def get_recommendations(
            self,
            window_days: Optional[int] = None,
            n: Optional[int] = None,
            now: Optional[datetime] = None
    ) -> List[CandidateItem]:
        """
        Get trending items.

        Ordering: play count descending, then most recent play, then
        content id.

        Args:
            window_days: Look-back window in days (default from config, 7)
            n: Number of items (default: RECOMMENDATION_DEFAULT_LIMIT)
            now: Reference time (default: current UTC time)

        Returns:
            List of CandidateItem with the play count as score
        """
        n = get_default_limit() if n is None else n
        if n <= 0:
            return []

        window_days = get_trending_window_days() if window_days is None else window_days
        now = now or datetime.now(UTC)
        since = now - timedelta(days=window_days)

        db = self.session_factory()
        try:
            play_counts = SignalRepository(db).get_play_counts(since=since)
            if not play_counts:
                return []

            published = CatalogRepository(db).get_published_ids(row[0] for row in play_counts)
            ranked = sorted(
                (row for row in play_counts if row[0] in published),
                key=lambda row: (-row[1], -(as_utc(row[2]) or _EPOCH).timestamp(), row[0])
            )

            return [
                CandidateItem(
                    content_id=content_id,
                    score=float(plays),
                    source_algorithm=SOURCE_TRENDING
                )
                for content_id, plays, _ in ranked[:n]
            ]
        except Exception as e:
            logger.error(f"Trending recommendations error: {str(e)}", exc_info=True)
            return []
        finally:
            db.close()

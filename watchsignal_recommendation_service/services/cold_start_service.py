"""Service for cold-start recommendations (no user context)."""
from datetime import UTC, datetime
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.config import get_default_limit
from watchsignal_recommendation_service.ml.scoring import cold_start_score
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import CandidateItem, SOURCE_COLD_START
from watchsignal_recommendation_service.repos import CatalogRepository

logger = logging.getLogger(__name__)


class ColdStartService:
    """
    Catalog-quality recommendations for anonymous and brand-new users.

    Takes the 2n newest published items and re-ranks them by average rating
    plus an age bonus.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def get_recommendations(self, n: Optional[int] = None, now: Optional[datetime] = None) -> List[CandidateItem]:
        """
        Get cold-start recommendations.

        Args:
            n: Number of recommendations (default: RECOMMENDATION_DEFAULT_LIMIT)
            now: Reference time for the current year (default: now, UTC)

        Returns:
            List of CandidateItem sorted by score descending
        """
        n = get_default_limit() if n is None else n
        if n <= 0:
            return []

        current_year = (now or datetime.now(UTC)).year

        db = self.session_factory()
        try:
            catalog = CatalogRepository(db)

            pool = catalog.get_published_by_release_year(limit=n * 2)
            if not pool:
                return []

            avg_ratings = catalog.get_average_ratings(item.content_id for item in pool)

            scored = [
                CandidateItem(
                    content_id=item.content_id,
                    score=cold_start_score(
                        avg_ratings.get(item.content_id, 0.0),
                        item.release_year,
                        current_year
                    ),
                    source_algorithm=SOURCE_COLD_START
                )
                for item in pool
            ]
            scored.sort(key=lambda candidate: candidate.score, reverse=True)
            return scored[:n]
        except Exception as e:
            logger.error(f"Cold start recommendations error: {str(e)}", exc_info=True)
            return []
        finally:
            db.close()

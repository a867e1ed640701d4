"""Service for genre-preference personalized recommendations."""
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.config import get_default_limit
from watchsignal_recommendation_service.ml.scoring import personalization_score, top_genres
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import CandidateItem, SOURCE_PERSONALIZED
from watchsignal_recommendation_service.repos import CatalogRepository, SignalRepository

logger = logging.getLogger(__name__)

POSITIVE_RATING = 4


class PersonalizedRecommendationService:
    """
    Recommend unwatched items in the user's preferred genres.

    Preferred genres come only from explicit positive ratings (4 stars or
    more). A user who completed titles but never rated one highly gets an
    empty list; callers fall back to cold start.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def get_preferred_genres(self, db: Session, user_id: str) -> List[str]:
        """Top 3 genres across the items the user rated 4 stars or higher."""
        ratings = SignalRepository(db).get_ratings(user_id, min_rating=POSITIVE_RATING)
        if not ratings:
            return []

        rated_items = CatalogRepository(db).get_items(r.content_id for r in ratings)
        genre_lists = [
            rated_items[r.content_id].genres or []
            for r in ratings
            if r.content_id in rated_items
        ]
        return top_genres(genre_lists)

    def get_recommendations(self, user_id: str, n: Optional[int] = None) -> List[CandidateItem]:
        """
        Get personalized recommendations.

        Args:
            user_id: Target user ID
            n: Number of recommendations (default: RECOMMENDATION_DEFAULT_LIMIT)

        Returns:
            List of CandidateItem sorted by score descending
        """
        n = get_default_limit() if n is None else n
        if n <= 0:
            return []

        db = self.session_factory()
        try:
            signals = SignalRepository(db)

            history = signals.get_completed_progress(user_id)
            if not history:
                return []

            preferred = self.get_preferred_genres(db, user_id)
            if not preferred:
                logger.debug(f"No positive ratings for user {user_id}; skipping personalization")
                return []

            # Anything with a progress row counts as seen, completed or not
            seen_ids = signals.get_watched_content_ids(user_id)

            scored = []
            for item in CatalogRepository(db).get_published_items(exclude_ids=seen_ids):
                score = personalization_score(item.genres, preferred)
                if score > 0:
                    scored.append((item.content_id, score))

            scored.sort(key=lambda pair: pair[1], reverse=True)

            return [
                CandidateItem(
                    content_id=content_id,
                    score=float(score),
                    source_algorithm=SOURCE_PERSONALIZED
                )
                for content_id, score in scored[:n]
            ]
        except Exception as e:
            logger.error(f"Personalized recommendations error for user {user_id}: {str(e)}", exc_info=True)
            return []
        finally:
            db.close()

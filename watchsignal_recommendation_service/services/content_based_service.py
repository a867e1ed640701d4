"""Service for content-based recommendations."""
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.config import get_default_limit
from watchsignal_recommendation_service.ml.scoring import (
    CAST_MATCH_POINTS,
    DIRECTOR_MATCH_POINTS,
    GENRE_MATCH_POINTS,
    STUDIO_MATCH_POINTS,
    content_similarity_score,
)
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import CandidateItem, SOURCE_CONTENT_BASED
from watchsignal_recommendation_service.repos import CatalogRepository, SignalRepository

logger = logging.getLogger(__name__)


class ContentBasedRecommendationService:
    """
    Service for content-based recommendations.
    Scores every published item against a source item on shared genres,
    director, cast and studio.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        """
        Initialize the recommendation service.

        Args:
            session_factory: Callable returning a new database session
                (defaults to the configured SessionLocal)
        """
        self.session_factory = session_factory or SessionLocal

        logger.info("Initialized ContentBasedRecommendationService")
        logger.info(
            f"Weights - Genre: {GENRE_MATCH_POINTS}, Director: {DIRECTOR_MATCH_POINTS}, "
            f"Cast: {CAST_MATCH_POINTS}, Studio: {STUDIO_MATCH_POINTS}"
        )

    def get_recommendations(
            self,
            content_id: str,
            user_id: Optional[str] = None,
            n: Optional[int] = None
    ) -> List[CandidateItem]:
        """
        Get items similar to a source item.

        The watchlist filter runs after the top-n cut, so a user with
        watchlisted matches can receive fewer than n items.

        Args:
            content_id: Source content ID
            user_id: If given, drop items on this user's watchlist
            n: Number of recommendations (default: RECOMMENDATION_DEFAULT_LIMIT)

        Returns:
            List of CandidateItem sorted by score descending
        """
        n = get_default_limit() if n is None else n
        if n <= 0:
            return []

        db = self.session_factory()
        try:
            catalog = CatalogRepository(db)

            source = catalog.get_item(content_id)
            if source is None:
                logger.warning(f"Content ID {content_id} not found in catalog")
                return []

            scored = []
            for item in catalog.get_published_items(exclude_ids=[content_id]):
                score = content_similarity_score(
                    source.genres, source.director, source.cast_members, source.studio_label,
                    item.genres, item.director, item.cast_members, item.studio_label,
                )
                if score > 0:
                    scored.append((item.content_id, score))

            # Stable sort keeps catalog order for equal scores
            scored.sort(key=lambda pair: pair[1], reverse=True)
            top = scored[:n]

            if user_id:
                watchlist = set(SignalRepository(db).get_watchlist_content_ids(user_id))
                top = [pair for pair in top if pair[0] not in watchlist]

            return [
                CandidateItem(
                    content_id=item_id,
                    score=float(score),
                    source_algorithm=SOURCE_CONTENT_BASED
                )
                for item_id, score in top
            ]
        except Exception as e:
            logger.error(f"Content-based filtering error for {content_id}: {str(e)}", exc_info=True)
            return []
        finally:
            db.close()

"""Service for collaborative ("users who watched X also watched Y") recommendations."""
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.config import get_default_limit
from watchsignal_recommendation_service.ml.scoring import rank_order_score
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import CandidateItem, SOURCE_COLLABORATIVE
from watchsignal_recommendation_service.repos import CatalogRepository, SignalRepository

logger = logging.getLogger(__name__)


class CollaborativeFilteringService:
    """
    Recommend content watched by users who share at least one watched item
    with the target user.

    The result is ordered by first discovery over neighbour rows sorted by
    (user id, content id); scores only encode that rank order.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def get_recommendations(self, user_id: str, n: Optional[int] = None) -> List[CandidateItem]:
        """
        Get collaborative recommendations for a user.

        Args:
            user_id: Target user ID
            n: Number of recommendations (default: RECOMMENDATION_DEFAULT_LIMIT)

        Returns:
            List of CandidateItem, empty when the user has no history or no
            neighbours (or on store failure)
        """
        n = get_default_limit() if n is None else n
        if n <= 0:
            return []

        db = self.session_factory()
        try:
            signals = SignalRepository(db)

            seed_ids = signals.get_watched_content_ids(user_id)
            if not seed_ids:
                return []

            neighbor_ids = signals.get_neighbor_user_ids(seed_ids, exclude_user_id=user_id)
            if not neighbor_ids:
                return []

            candidate_ids = signals.get_content_ids_watched_by(
                neighbor_ids,
                exclude_content_ids=seed_ids
            )
            published = CatalogRepository(db).get_published_ids(candidate_ids)
            ordered = [content_id for content_id in candidate_ids if content_id in published][:n]

            logger.debug(
                f"Collaborative: user {user_id} seed={len(seed_ids)} "
                f"neighbors={len(neighbor_ids)} candidates={len(candidate_ids)}"
            )

            return [
                CandidateItem(
                    content_id=content_id,
                    score=rank_order_score(idx, n),
                    source_algorithm=SOURCE_COLLABORATIVE
                )
                for idx, content_id in enumerate(ordered)
            ]
        except Exception as e:
            logger.error(f"Collaborative filtering error for user {user_id}: {str(e)}", exc_info=True)
            return []
        finally:
            db.close()

"""Service combining collaborative, personalized and trending results."""
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.config import get_default_limit, get_hybrid_max_workers
from watchsignal_recommendation_service.ml.scoring import HYBRID_WEIGHTS, rank_decay_contribution
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import (
    CandidateItem,
    SOURCE_COLLABORATIVE,
    SOURCE_HYBRID,
    SOURCE_PERSONALIZED,
    SOURCE_TRENDING,
)
from watchsignal_recommendation_service.services.collaborative_service import CollaborativeFilteringService
from watchsignal_recommendation_service.services.personalized_service import PersonalizedRecommendationService
from watchsignal_recommendation_service.services.trending_service import TrendingService

logger = logging.getLogger(__name__)

# Trending input is always a one-week window, independent of TRENDING_WINDOW_DAYS
HYBRID_TRENDING_WINDOW_DAYS = 7


class HybridRecommendationService:
    """
    Merge three ranked lists into one with rank decay.

    Each item at position idx of a source list contributes
    ``weight * (1 - idx/n) * 100``; contributions add up per content id.
    The three source algorithms run concurrently, each with its own
    session, and are joined before merging.
    """

    def __init__(
            self,
            session_factory: Optional[Callable[[], Session]] = None,
            collaborative: Optional[CollaborativeFilteringService] = None,
            personalized: Optional[PersonalizedRecommendationService] = None,
            trending: Optional[TrendingService] = None,
            weights: Optional[Dict[str, float]] = None,
            max_workers: Optional[int] = None
    ):
        """
        Initialize the hybrid service.

        Args:
            session_factory: Session factory passed to the default sub-services
            collaborative: Collaborative service (default: new instance)
            personalized: Personalized service (default: new instance)
            trending: Trending service (default: new instance)
            weights: Algorithm weights keyed by source tag
            max_workers: Thread pool size for the fan-out (non-positive = configured default)
        """
        self.session_factory = session_factory or SessionLocal
        self.collaborative = collaborative or CollaborativeFilteringService(self.session_factory)
        self.personalized = personalized or PersonalizedRecommendationService(self.session_factory)
        self.trending = trending or TrendingService(self.session_factory)
        self.weights = dict(weights or HYBRID_WEIGHTS)
        self.max_workers = max_workers if max_workers and max_workers > 0 else get_hybrid_max_workers()

    def _fetch_sources(self, user_id: str, n: int, now: Optional[datetime]) -> Dict[str, List[CandidateItem]]:
        """Run the three source algorithms concurrently and wait for all of them."""
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="hybrid") as executor:
            futures = {
                SOURCE_COLLABORATIVE: executor.submit(self.collaborative.get_recommendations, user_id, n),
                SOURCE_PERSONALIZED: executor.submit(self.personalized.get_recommendations, user_id, n),
                SOURCE_TRENDING: executor.submit(
                    self.trending.get_recommendations, HYBRID_TRENDING_WINDOW_DAYS, n, now
                ),
            }
            return {source: future.result() for source, future in futures.items()}

    def combine(self, source_lists: Dict[str, List[CandidateItem]], n: int) -> List[CandidateItem]:
        """
        Merge ranked source lists by rank-decayed weighted contribution.

        Args:
            source_lists: Ranked candidates keyed by source tag
            n: Rank-decay length and result size

        Returns:
            Top n CandidateItem, highest combined score first
        """
        if n <= 0:
            return []

        combined: Dict[str, CandidateItem] = {}
        for source in (SOURCE_COLLABORATIVE, SOURCE_PERSONALIZED, SOURCE_TRENDING):
            weight = self.weights.get(source, 0.0)
            for idx, candidate in enumerate(source_lists.get(source, [])[:n]):
                contribution = rank_decay_contribution(weight, idx, n)
                entry = combined.get(candidate.content_id)
                if entry is None:
                    entry = CandidateItem(
                        content_id=candidate.content_id,
                        score=0.0,
                        source_algorithm=SOURCE_HYBRID
                    )
                    combined[candidate.content_id] = entry
                entry.score += contribution
                entry.components[source] = entry.components.get(source, 0.0) + contribution

        # Stable sort: equal scores keep first-accumulated order
        ranked = sorted(combined.values(), key=lambda candidate: candidate.score, reverse=True)
        return ranked[:n]

    def get_recommendations(
            self,
            user_id: str,
            n: Optional[int] = None,
            now: Optional[datetime] = None
    ) -> List[CandidateItem]:
        """
        Get hybrid recommendations for a user.

        Args:
            user_id: Target user ID
            n: Number of recommendations (default: RECOMMENDATION_DEFAULT_LIMIT)
            now: Reference time for the trending window

        Returns:
            List of CandidateItem tagged ``hybrid`` with per-source components
        """
        n = get_default_limit() if n is None else n
        if n <= 0:
            return []

        try:
            source_lists = self._fetch_sources(user_id, n, now)
            logger.debug(
                f"Hybrid sources for user {user_id}: "
                + ", ".join(f"{source}={len(items)}" for source, items in source_lists.items())
            )
            return self.combine(source_lists, n)
        except Exception as e:
            logger.error(f"Hybrid recommendations error for user {user_id}: {str(e)}", exc_info=True)
            return []

"""Service listing titles the user started but has not finished."""
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.config import get_default_limit
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import CandidateItem, SOURCE_CONTINUE_WATCHING
from watchsignal_recommendation_service.repos import CatalogRepository, SignalRepository

logger = logging.getLogger(__name__)


class ContinueWatchingService:
    """In-progress titles, most recently watched first, scored by percent watched."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def get_recommendations(self, user_id: str, n: Optional[int] = None) -> List[CandidateItem]:
        """
        Get titles the user can resume.

        Args:
            user_id: User ID
            n: Number of titles (default: RECOMMENDATION_DEFAULT_LIMIT)

        Returns:
            Incomplete, published titles by last watched time, scored by
            percent watched (0-100), or [] on failure
        """
        n = get_default_limit() if n is None else n
        if n <= 0:
            return []

        db = self.session_factory()
        try:
            in_progress = SignalRepository(db).get_in_progress(user_id)
            if not in_progress:
                return []

            published = CatalogRepository(db).get_published_ids(row.content_id for row in in_progress)
            return [
                CandidateItem(
                    content_id=row.content_id,
                    score=round(row.progress_percentage * 100, 1),
                    source_algorithm=SOURCE_CONTINUE_WATCHING
                )
                for row in in_progress
                if row.content_id in published
            ][:n]
        except Exception as e:
            logger.error(f"Continue watching error for user {user_id}: {str(e)}", exc_info=True)
            return []
        finally:
            db.close()

"""Service for user similarity, engagement scores and viewing insights."""
from collections import Counter
from typing import Callable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.ml.scoring import top_genres
from watchsignal_recommendation_service.ml.similarity_computer import (
    SimilarityComputer,
    completion_rate,
    engagement_score,
    jaccard_similarity,
)
from watchsignal_recommendation_service.models.base import as_utc
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import EngagementBreakdown, UserInsights
from watchsignal_recommendation_service.repos import CatalogRepository, SignalRepository

logger = logging.getLogger(__name__)


def watching_time_bucket(hour: int) -> str:
    """Map an hour of day (UTC) to a coarse watching-time label."""
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    return "night"


class EngagementService:
    """
    Pairwise user similarity and per-user engagement.

    Every method degrades to a neutral value (0.0, [] or None) on store
    failure and logs the error.
    """

    def __init__(
            self,
            session_factory: Optional[Callable[[], Session]] = None,
            similarity_computer: Optional[SimilarityComputer] = None
    ):
        self.session_factory = session_factory or SessionLocal
        self.similarity_computer = similarity_computer or SimilarityComputer()

    # ===== SIMILARITY =====

    def calculate_user_similarity(self, user_id_a: str, user_id_b: str) -> float:
        """
        Jaccard similarity of two users' watched content sets.

        Returns:
            Value in [0, 1]; 0.0 if either user has no watch progress
        """
        db = self.session_factory()
        try:
            signals = SignalRepository(db)
            return jaccard_similarity(
                signals.get_watched_content_ids(user_id_a),
                signals.get_watched_content_ids(user_id_b)
            )
        except Exception as e:
            logger.error(f"Error calculating similarity ({user_id_a}, {user_id_b}): {str(e)}", exc_info=True)
            return 0.0
        finally:
            db.close()

    def find_similar_users(self, user_id: str, n: int = 10) -> List[Tuple[str, float]]:
        """
        Rank other users by Jaccard similarity to ``user_id``.

        Args:
            user_id: Target user ID
            n: Maximum number of users

        Returns:
            List of (user_id, similarity), highest first
        """
        db = self.session_factory()
        try:
            watch_sets = SignalRepository(db).get_user_watch_sets()
            return self.similarity_computer.rank_similar_users(user_id, watch_sets, n=n)
        except Exception as e:
            logger.error(f"Error finding similar users for {user_id}: {str(e)}", exc_info=True)
            return []
        finally:
            db.close()

    # ===== ENGAGEMENT =====

    def compute_breakdown(self, db: Session, user_id: str) -> EngagementBreakdown:
        """Engagement inputs and score using an existing session."""
        signals = SignalRepository(db)
        progress = signals.get_progress(user_id)
        completed = sum(1 for row in progress if row.completed)
        comments = signals.count_comments(user_id)
        ratings = signals.count_ratings(user_id)
        watchlist = signals.count_watchlist(user_id)
        rate = completion_rate(completed, len(progress))

        return EngagementBreakdown(
            user_id=user_id,
            progress_count=len(progress),
            completed_count=completed,
            comment_count=comments,
            rating_count=ratings,
            watchlist_count=watchlist,
            completion_rate=rate,
            score=engagement_score(rate, comments, ratings, watchlist),
        )

    def get_engagement_breakdown(self, user_id: str) -> Optional[EngagementBreakdown]:
        """Engagement score together with every count that went into it."""
        db = self.session_factory()
        try:
            return self.compute_breakdown(db, user_id)
        except Exception as e:
            logger.error(f"Error calculating engagement for {user_id}: {str(e)}", exc_info=True)
            return None
        finally:
            db.close()

    def calculate_engagement_score(self, user_id: str) -> float:
        """
        Engagement score:
        completion_rate*30 + comments*10 + ratings*15 + watchlist*5.

        Returns:
            Score, or 0.0 on failure
        """
        breakdown = self.get_engagement_breakdown(user_id)
        return breakdown.score if breakdown else 0.0

    # ===== INSIGHTS =====

    def get_user_insights(self, user_id: str) -> Optional[UserInsights]:
        """
        Summarise a user's viewing behaviour.

        Args:
            user_id: User ID

        Returns:
            UserInsights, or None if the user has no watch progress
        """
        db = self.session_factory()
        try:
            signals = SignalRepository(db)
            progress = signals.get_progress(user_id)
            if not progress:
                return None

            breakdown = self.compute_breakdown(db, user_id)
            items = CatalogRepository(db).get_items(row.content_id for row in progress)

            total_seconds = sum(row.progress_seconds or 0 for row in progress)
            completed_rows = [row for row in progress if row.completed]
            completed_seconds = sum(row.progress_seconds or 0 for row in completed_rows)

            watched_items = [items[row.content_id] for row in progress if row.content_id in items]
            directors = Counter(item.director for item in watched_items if item.director)

            events = signals.get_user_events(user_id)
            preferred_time = None
            if events:
                hours = Counter(watching_time_bucket(as_utc(event.created_at).hour) for event in events)
                preferred_time = hours.most_common(1)[0][0]

            return UserInsights(
                user_id=user_id,
                total_films_watched=len(completed_rows),
                total_watch_time_hours=round(total_seconds / 3600, 1),
                average_film_duration_minutes=(
                    round(completed_seconds / len(completed_rows) / 60) if completed_rows else 0
                ),
                favorite_genres=top_genres(item.genres for item in watched_items),
                favorite_directors=[director for director, _ in directors.most_common(3)],
                completion_rate=round(breakdown.completion_rate * 100, 1),
                engagement_score=breakdown.score,
                preferred_watching_time=preferred_time,
                last_active=as_utc(signals.get_last_watched(user_id)),
            )
        except Exception as e:
            logger.error(f"Error getting user insights for {user_id}: {str(e)}", exc_info=True)
            return None
        finally:
            db.close()

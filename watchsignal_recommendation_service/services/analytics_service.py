"""Service for content, platform and cohort analytics."""
from datetime import UTC, datetime, timedelta
from typing import Callable, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import (
    CandidateItem,
    CohortAnalysis,
    ContentAnalytics,
    SOURCE_TOP_CONTENT,
)
from watchsignal_recommendation_service.models.watch_event import EVENT_COMPLETE, EVENT_PLAY
from watchsignal_recommendation_service.repos import CatalogRepository, SignalRepository

logger = logging.getLogger(__name__)

ACTIVE_USER_WINDOW_DAYS = 7


class AnalyticsService:
    """
    Aggregate viewing metrics for insight views.

    All aggregates are derived from the signal tables on every call;
    nothing is cached or stored.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def get_content_analytics(self, content_id: str) -> Optional[ContentAnalytics]:
        """
        Viewing metrics for one content item.

        Args:
            content_id: Content ID

        Returns:
            ContentAnalytics, or None if the item is unknown
        """
        db = self.session_factory()
        try:
            item = CatalogRepository(db).get_item(content_id)
            if item is None:
                return None

            signals = SignalRepository(db)
            plays = signals.count_content_events(content_id, EVENT_PLAY)
            completions = signals.count_content_events(content_id, EVENT_COMPLETE)
            comments = signals.get_content_comments(content_id)
            ratings = [c.rating for c in comments if c.rating is not None]

            return ContentAnalytics(
                content_id=content_id,
                title=item.title,
                total_views=plays,
                total_completions=completions,
                completion_rate=round(completions / plays * 100, 1) if plays else 0.0,
                avg_rating=round(sum(ratings) / len(ratings), 1) if ratings else 0.0,
                total_comments=len(comments),
                total_likes=sum(c.likes_count or 0 for c in comments),
                added_to_watchlist_count=signals.count_content_watchlist(content_id),
            )
        except Exception as e:
            logger.error(f"Error getting analytics for {content_id}: {str(e)}", exc_info=True)
            return None
        finally:
            db.close()

    def get_top_content(self, n: int = 10) -> List[CandidateItem]:
        """Published items with the most plays of all time."""
        if n <= 0:
            return []

        db = self.session_factory()
        try:
            play_counts = SignalRepository(db).get_play_counts()
            published = CatalogRepository(db).get_published_ids(row[0] for row in play_counts)
            ranked = sorted(
                (row for row in play_counts if row[0] in published),
                key=lambda row: (-row[1], row[0])
            )
            return [
                CandidateItem(
                    content_id=content_id,
                    score=float(plays),
                    source_algorithm=SOURCE_TOP_CONTENT
                )
                for content_id, plays, _ in ranked[:n]
            ]
        except Exception as e:
            logger.error(f"Error getting top content: {str(e)}", exc_info=True)
            return []
        finally:
            db.close()

    def get_active_users(self, days_back: int = ACTIVE_USER_WINDOW_DAYS, now: Optional[datetime] = None) -> int:
        """Number of distinct signed-in users with playback events in the window."""
        since = (now or datetime.now(UTC)) - timedelta(days=days_back)

        db = self.session_factory()
        try:
            return len(SignalRepository(db).get_active_user_ids(since))
        except Exception as e:
            logger.error(f"Error getting active users: {str(e)}", exc_info=True)
            return 0
        finally:
            db.close()

    def get_platform_analytics(self, now: Optional[datetime] = None) -> Optional[Dict]:
        """
        Platform-wide overview.

        Returns:
            Dict with catalog, user and engagement totals, top content and
            active users over the last 7 days; None on failure
        """
        now = now or datetime.now(UTC)

        db = self.session_factory()
        try:
            totals = SignalRepository(db).get_signal_totals()
            total_content = CatalogRepository(db).count_items()
        except Exception as e:
            logger.error(f"Error getting platform analytics: {str(e)}", exc_info=True)
            return None
        finally:
            db.close()

        return {
            'total_content': total_content,
            'total_users': totals['users'],
            'total_engagements': totals['comments'] + totals['watchlist_entries'],
            'total_playbacks': totals['events'],
            'top_content': [c.to_dict() for c in self.get_top_content(5)],
            'active_users_last_7_days': self.get_active_users(ACTIVE_USER_WINDOW_DAYS, now=now),
            'timestamp': now.isoformat(),
        }

    def analyze_cohort(self, cohort_name: str, user_ids: List[str]) -> Optional[CohortAnalysis]:
        """
        Completion and progress metrics for a group of users (A/B cohorts).

        Args:
            cohort_name: Label for the cohort
            user_ids: Users in the cohort

        Returns:
            CohortAnalysis, or None for an empty cohort or on failure
        """
        user_ids = list(dict.fromkeys(user_ids))
        if not user_ids:
            return None

        db = self.session_factory()
        try:
            progress = SignalRepository(db).get_progress_for_users(user_ids)
            completed = sum(1 for row in progress if row.completed)

            return CohortAnalysis(
                cohort_name=cohort_name,
                user_count=len(user_ids),
                completion_rate=round(completed / len(progress) * 100, 1) if progress else 0.0,
                avg_progress_percentage=(
                    round(sum(row.progress_percentage for row in progress) / len(progress) * 100, 1)
                    if progress else 0.0
                ),
            )
        except Exception as e:
            logger.error(f"Error analyzing cohort {cohort_name}: {str(e)}", exc_info=True)
            return None
        finally:
            db.close()

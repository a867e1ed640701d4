"""Read-only queries over the viewing signal tables."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from watchsignal_recommendation_service.models import (
    ContentComment,
    WatchEvent,
    WatchlistEntry,
    WatchProgress,
)
from watchsignal_recommendation_service.models.base import as_naive_utc
from watchsignal_recommendation_service.models.watch_event import EVENT_PLAY

logger = logging.getLogger(__name__)


class SignalRepository:
    """
    Read-only access to watch progress, watch events, comments/ratings and
    watchlist entries.

    Every list is returned in a stable order (user id, then content id,
    unless stated otherwise) so that first-seen enumeration in the
    algorithms is reproducible.
    """

    def __init__(self, db: Session):
        self.db = db

    # ===== WATCH PROGRESS =====

    # noinspection PyTypeChecker
    def get_progress(self, user_id: str) -> List[WatchProgress]:
        """Get all progress rows for a user."""
        return (
            self.db.query(WatchProgress)
            .filter(WatchProgress.user_id == user_id)
            .order_by(WatchProgress.content_id)
            .all()
        )

    # noinspection PyTypeChecker
    def get_completed_progress(self, user_id: str) -> List[WatchProgress]:
        """Get the user's completed progress rows (their watch history)."""
        return (
            self.db.query(WatchProgress)
            .filter(
                WatchProgress.user_id == user_id,
                WatchProgress.completed.is_(True),
            )
            .order_by(WatchProgress.content_id)
            .all()
        )

    def get_watched_content_ids(self, user_id: str) -> List[str]:
        """Get content ids the user has any progress row for (the seed set)."""
        rows = (
            self.db.query(WatchProgress.content_id)
            .filter(WatchProgress.user_id == user_id)
            .order_by(WatchProgress.content_id)
            .all()
        )
        return [row[0] for row in rows]

    def get_neighbor_user_ids(self, content_ids: Iterable[str], exclude_user_id: str) -> List[str]:
        """
        Find other users with progress on any of the given content ids.

        Args:
            content_ids: Seed content ids
            exclude_user_id: The target user

        Returns:
            Distinct user ids, ordered
        """
        content_ids = list(content_ids)
        if not content_ids:
            return []

        rows = (
            self.db.query(WatchProgress.user_id)
            .filter(
                WatchProgress.content_id.in_(content_ids),
                WatchProgress.user_id != exclude_user_id,
            )
            .distinct()
            .order_by(WatchProgress.user_id)
            .all()
        )
        return [row[0] for row in rows]

    def get_content_ids_watched_by(
            self,
            user_ids: Iterable[str],
            exclude_content_ids: Optional[Iterable[str]] = None
    ) -> List[str]:
        """
        Get content ids watched by any of the given users.

        Ids are de-duplicated in first-seen order over rows sorted by
        (user id, content id).

        Args:
            user_ids: Users whose progress rows to scan
            exclude_content_ids: Content ids to leave out

        Returns:
            Ordered list of distinct content ids
        """
        user_ids = list(user_ids)
        if not user_ids:
            return []

        query = self.db.query(WatchProgress.content_id).filter(WatchProgress.user_id.in_(user_ids))

        excluded = list(exclude_content_ids or [])
        if excluded:
            query = query.filter(WatchProgress.content_id.notin_(excluded))

        rows = query.order_by(WatchProgress.user_id, WatchProgress.content_id).all()

        seen: Set[str] = set()
        ordered: List[str] = []
        for (content_id,) in rows:
            if content_id not in seen:
                seen.add(content_id)
                ordered.append(content_id)
        return ordered

    def get_last_watched(self, user_id: str) -> Optional[datetime]:
        """Most recent last_watched timestamp for a user, or None."""
        return (
            self.db.query(func.max(WatchProgress.last_watched))
            .filter(WatchProgress.user_id == user_id)
            .scalar()
        )

    # noinspection PyTypeChecker
    def get_in_progress(self, user_id: str, limit: Optional[int] = None) -> List[WatchProgress]:
        """Get incomplete progress rows, most recently watched first."""
        query = (
            self.db.query(WatchProgress)
            .filter(
                WatchProgress.user_id == user_id,
                WatchProgress.completed.is_(False),
            )
            .order_by(desc(WatchProgress.last_watched), WatchProgress.content_id)
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_all_user_ids(self) -> List[str]:
        """Get every user with at least one progress row."""
        rows = self.db.query(WatchProgress.user_id).distinct().order_by(WatchProgress.user_id).all()
        return [row[0] for row in rows]

    def get_user_watch_sets(self, user_ids: Optional[Iterable[str]] = None) -> Dict[str, Set[str]]:
        """
        Map each user to the set of content ids they have progress on.

        Args:
            user_ids: Restrict to these users (None = all users)

        Returns:
            Dict of user id -> content id set, keys in user id order
        """
        query = self.db.query(WatchProgress.user_id, WatchProgress.content_id)
        if user_ids is not None:
            user_ids = list(user_ids)
            if not user_ids:
                return {}
            query = query.filter(WatchProgress.user_id.in_(user_ids))

        watch_sets: Dict[str, Set[str]] = {}
        for user_id, content_id in query.order_by(WatchProgress.user_id, WatchProgress.content_id).all():
            watch_sets.setdefault(user_id, set()).add(content_id)
        return watch_sets

    # noinspection PyTypeChecker
    def get_progress_for_users(self, user_ids: Iterable[str]) -> List[WatchProgress]:
        """Get progress rows for a group of users."""
        user_ids = list(user_ids)
        if not user_ids:
            return []
        return (
            self.db.query(WatchProgress)
            .filter(WatchProgress.user_id.in_(user_ids))
            .order_by(WatchProgress.user_id, WatchProgress.content_id)
            .all()
        )

    # ===== COMMENTS AND RATINGS =====

    # noinspection PyTypeChecker
    def get_ratings(self, user_id: str, min_rating: Optional[int] = None) -> List[ContentComment]:
        """
        Get the user's rated comments, oldest first.

        Args:
            user_id: User ID
            min_rating: Only return ratings >= this many stars

        Returns:
            List of ContentComment rows with a non-null rating
        """
        query = self.db.query(ContentComment).filter(
            ContentComment.user_id == user_id,
            ContentComment.rating.isnot(None),
        )
        if min_rating is not None:
            query = query.filter(ContentComment.rating >= min_rating)
        return query.order_by(ContentComment.created_at, ContentComment.id).all()

    def count_comments(self, user_id: str) -> int:
        """Count every comment row (rated or not) by the user."""
        return self.db.query(ContentComment).filter(ContentComment.user_id == user_id).count()

    def count_ratings(self, user_id: str) -> int:
        """Count the user's comment rows that carry a star rating."""
        return (
            self.db.query(ContentComment)
            .filter(
                ContentComment.user_id == user_id,
                ContentComment.rating.isnot(None),
            )
            .count()
        )

    # ===== WATCHLIST =====

    def get_watchlist_content_ids(self, user_id: str) -> List[str]:
        """Get content ids on the user's watchlist."""
        rows = (
            self.db.query(WatchlistEntry.content_id)
            .filter(WatchlistEntry.user_id == user_id)
            .order_by(WatchlistEntry.content_id)
            .all()
        )
        return [row[0] for row in rows]

    def count_watchlist(self, user_id: str) -> int:
        """Count the user's watchlist entries."""
        return self.db.query(WatchlistEntry).filter(WatchlistEntry.user_id == user_id).count()

    # ===== WATCH EVENTS =====

    def get_play_counts(self, since: Optional[datetime] = None) -> List[Tuple[str, int, datetime]]:
        """
        Count play events per content item.

        Args:
            since: Only count plays at or after this time (None = all time)

        Returns:
            List of (content_id, play_count, last_played) tuples, unordered
        """
        query = self.db.query(
            WatchEvent.content_id,
            func.count(WatchEvent.id),
            func.max(WatchEvent.created_at),
        ).filter(WatchEvent.event_type == EVENT_PLAY)

        if since is not None:
            # Stored timestamps are naive UTC
            query = query.filter(WatchEvent.created_at >= as_naive_utc(since))

        rows = query.group_by(WatchEvent.content_id).all()
        return [(content_id, int(count), last_played) for content_id, count, last_played in rows]

    # noinspection PyTypeChecker
    def get_user_events(self, user_id: str) -> List[WatchEvent]:
        """Get all events recorded for a user, oldest first."""
        return (
            self.db.query(WatchEvent)
            .filter(WatchEvent.user_id == user_id)
            .order_by(WatchEvent.created_at, WatchEvent.id)
            .all()
        )

    def get_active_user_ids(self, since: datetime) -> List[str]:
        """Distinct non-anonymous users with any event at or after ``since``."""
        rows = (
            self.db.query(WatchEvent.user_id)
            .filter(
                WatchEvent.created_at >= as_naive_utc(since),
                WatchEvent.user_id.isnot(None),
            )
            .distinct()
            .order_by(WatchEvent.user_id)
            .all()
        )
        return [row[0] for row in rows]

    # ===== PER-CONTENT AGGREGATES =====

    def count_content_events(self, content_id: str, event_type: str) -> int:
        """Count events of one kind for a content item."""
        return (
            self.db.query(WatchEvent)
            .filter(
                WatchEvent.content_id == content_id,
                WatchEvent.event_type == event_type,
            )
            .count()
        )

    # noinspection PyTypeChecker
    def get_content_comments(self, content_id: str) -> List[ContentComment]:
        """Get every comment row for a content item."""
        return (
            self.db.query(ContentComment)
            .filter(ContentComment.content_id == content_id)
            .order_by(ContentComment.created_at, ContentComment.id)
            .all()
        )

    def count_content_watchlist(self, content_id: str) -> int:
        """Count users who saved a content item."""
        return self.db.query(WatchlistEntry).filter(WatchlistEntry.content_id == content_id).count()

    def get_signal_totals(self) -> Dict[str, int]:
        """Row counts across the signal tables."""
        return {
            "users": self.db.query(WatchProgress.user_id).distinct().count(),
            "comments": self.db.query(ContentComment).count(),
            "watchlist_entries": self.db.query(WatchlistEntry).count(),
            "events": self.db.query(WatchEvent).count(),
        }

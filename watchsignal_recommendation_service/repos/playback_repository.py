"""Write-side repository for playback signals."""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.models import (
    ContentComment,
    WatchEvent,
    WatchlistEntry,
    WatchProgress,
)
from watchsignal_recommendation_service.models.base import as_naive_utc, utc_now

logger = logging.getLogger(__name__)


class PlaybackRepository:
    """
    Repository for appending watch events and upserting watch progress.

    Also carries the bulk loaders the population script uses for signal
    CSV exports.
    """

    def __init__(self, db: Session):
        self.db = db

    def add_event(
            self,
            user_id: str | None,
            content_id: str,
            event_type: str,
            elapsed_seconds: int,
            session_id: str | None,
            created_at: datetime | None = None
    ) -> WatchEvent:
        """Append one watch event. Events are never updated afterwards."""
        event = WatchEvent(
            user_id=user_id,
            content_id=content_id,
            event_type=event_type,
            elapsed_seconds=int(elapsed_seconds),
            session_id=session_id,
            created_at=as_naive_utc(created_at or utc_now()),
        )
        self.db.add(event)
        self.db.commit()
        return event

    def _find_progress(self, user_id: str, content_id: str) -> WatchProgress | None:
        return (
            self.db.query(WatchProgress)
            .filter(
                WatchProgress.user_id == user_id,
                WatchProgress.content_id == content_id,
            )
            .first()
        )

    def _apply_progress(
            self,
            progress: WatchProgress | None,
            user_id: str,
            content_id: str,
            progress_seconds: int,
            total_seconds: int | None,
            completed: bool,
            last_watched: datetime | None
    ) -> WatchProgress:
        """Update ``progress`` in place, or add a new row when it is None. Does not commit."""
        reached_end = bool(total_seconds) and progress_seconds >= total_seconds
        watched_at = as_naive_utc(last_watched or utc_now())

        if progress:
            progress.progress_seconds = progress_seconds  # type: ignore[assignment]
            if total_seconds is not None:
                progress.total_seconds = total_seconds  # type: ignore[assignment]
            progress.completed = bool(progress.completed) or completed or reached_end  # type: ignore[assignment]
            progress.last_watched = watched_at  # type: ignore[assignment]
        else:
            progress = WatchProgress(
                user_id=user_id,
                content_id=content_id,
                progress_seconds=progress_seconds,
                total_seconds=total_seconds,
                completed=completed or reached_end,
                last_watched=watched_at,
            )
            self.db.add(progress)

        return progress

    def upsert_progress(
            self,
            user_id: str,
            content_id: str,
            progress_seconds: int,
            total_seconds: int | None = None,
            completed: bool = False,
            last_watched: datetime | None = None
    ) -> WatchProgress:
        """
        Insert or update the progress row for (user, content).

        ``completed`` only ever moves from false to true: it is set when the
        caller says so, when progress reaches the total, or when the row was
        already complete.

        Returns:
            The stored WatchProgress row
        """
        progress = self._apply_progress(
            self._find_progress(user_id, content_id),
            user_id,
            content_id,
            progress_seconds,
            total_seconds,
            completed,
            last_watched,
        )

        self.db.commit()
        self.db.refresh(progress)

        return progress

    def bulk_store_progress(self, rows: list[dict], batch_size: int = 500) -> int:
        """
        Upsert progress rows from an export, committing once per batch.

        The monotonic completion rule applies across rows, including repeated
        (user, content) pairs inside one batch.

        Args:
            rows: Progress row dicts
            batch_size: Rows per commit

        Returns:
            Number of rows applied
        """
        # Rows added in the current batch, not yet visible to queries
        pending: dict[tuple[str, str], WatchProgress] = {}
        count = 0

        for row in rows:
            user_id = str(row["user_id"])
            content_id = str(row["content_id"])
            key = (user_id, content_id)

            progress = pending.get(key) or self._find_progress(user_id, content_id)
            pending[key] = self._apply_progress(
                progress,
                user_id,
                content_id,
                int(row.get("progress_seconds") or 0),
                row.get("total_seconds"),
                bool(row.get("completed")),
                row.get("last_watched"),
            )
            count += 1

            if count % batch_size == 0:
                self.db.commit()
                pending.clear()
                logger.info(f"  Stored {count} progress rows...")

        self.db.commit()
        logger.info(f"✓ Stored {count} progress rows")
        return count

    def bulk_store_events(self, rows: list[dict], batch_size: int = 1000) -> int:
        """Append events from an export."""
        records = [
            WatchEvent(
                user_id=row.get("user_id"),
                content_id=str(row["content_id"]),
                event_type=row["event_type"],
                elapsed_seconds=int(row.get("elapsed_seconds") or 0),
                session_id=row.get("session_id"),
                created_at=as_naive_utc(row.get("created_at") or utc_now()),
            )
            for row in rows
        ]
        return self._bulk_save(records, batch_size, "events")

    def bulk_store_comments(self, rows: list[dict], batch_size: int = 1000) -> int:
        """Insert comment/rating rows from an export."""
        records = [
            ContentComment(
                user_id=str(row["user_id"]),
                content_id=str(row["content_id"]),
                rating=row.get("rating"),
                body=row.get("body"),
                likes_count=int(row.get("likes_count") or 0),
                created_at=as_naive_utc(row.get("created_at") or utc_now()),
            )
            for row in rows
        ]
        return self._bulk_save(records, batch_size, "comments")

    def bulk_store_watchlist(self, rows: list[dict], batch_size: int = 1000) -> int:
        """Insert watchlist entries from an export."""
        records = [
            WatchlistEntry(
                user_id=str(row["user_id"]),
                content_id=str(row["content_id"]),
                added_at=as_naive_utc(row.get("added_at") or utc_now()),
            )
            for row in rows
        ]
        return self._bulk_save(records, batch_size, "watchlist entries")

    def _bulk_save(self, records: list, batch_size: int, label: str) -> int:
        count = 0
        for i in range(0, len(records), batch_size):
            batch = records[i : i + batch_size]
            self.db.bulk_save_objects(batch)
            self.db.commit()
            count += len(batch)

        logger.info(f"✓ Stored {count} {label}")
        return count

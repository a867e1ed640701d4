"""Service recording playback signals for the recommendation algorithms."""
from typing import Callable, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.watch_event import EVENT_KINDS
from watchsignal_recommendation_service.repos import PlaybackRepository

logger = logging.getLogger(__name__)


class PlaybackService:
    """
    Write side of the signal store.

    Recording is fire-and-forget for the readers: failures are logged and
    reported as False, never raised. Events are appended as-is; repeated
    calls with the same payload produce repeated rows.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self.session_factory = session_factory or SessionLocal

    def record(
            self,
            user_id: Optional[str],
            content_id: str,
            event_kind: str,
            elapsed_seconds: int,
            session_id: Optional[str]
    ) -> bool:
        """
        Append a playback event.

        Args:
            user_id: Viewer ID, or None for anonymous playback
            content_id: Content being played
            event_kind: One of play, pause, resume, seek, complete
            elapsed_seconds: Playback position in seconds
            session_id: Playback session ID

        Returns:
            True if the event was stored
        """
        if event_kind not in EVENT_KINDS:
            logger.warning(f"Ignoring playback event with unknown kind '{event_kind}' for {content_id}")
            return False

        db = self.session_factory()
        try:
            PlaybackRepository(db).add_event(
                user_id=user_id,
                content_id=content_id,
                event_type=event_kind,
                elapsed_seconds=elapsed_seconds,
                session_id=session_id
            )
            return True
        except Exception as e:
            db.rollback()
            logger.error(f"Error tracking playback for {content_id}: {str(e)}", exc_info=True)
            return False
        finally:
            db.close()

    def update_progress(
            self,
            user_id: str,
            content_id: str,
            progress_seconds: int,
            total_seconds: Optional[int] = None,
            completed: bool = False
    ) -> bool:
        """
        Upsert the user's progress on a content item.

        A row that is already complete stays complete.

        Returns:
            True if the row was stored
        """
        db = self.session_factory()
        try:
            PlaybackRepository(db).upsert_progress(
                user_id=user_id,
                content_id=content_id,
                progress_seconds=progress_seconds,
                total_seconds=total_seconds,
                completed=completed
            )
            return True
        except Exception as e:
            db.rollback()
            logger.error(f"Error updating progress for {user_id}/{content_id}: {str(e)}", exc_info=True)
            return False
        finally:
            db.close()

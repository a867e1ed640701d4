"""Service for churn risk classification."""
from datetime import UTC, datetime
from typing import Callable, Optional
import logging

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.ml.churn_model import ChurnRiskModel
from watchsignal_recommendation_service.models.base import as_utc
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.models.results import ChurnAssessment
from watchsignal_recommendation_service.repos import SignalRepository
from watchsignal_recommendation_service.services.engagement_service import EngagementService

logger = logging.getLogger(__name__)


class ChurnRiskService:
    """
    Classify users into high / medium / low churn risk.

    Users without any watch progress are classified high straight away;
    everyone else is scored with the additive rule model.
    """

    def __init__(
            self,
            session_factory: Optional[Callable[[], Session]] = None,
            model: Optional[ChurnRiskModel] = None
    ):
        self.session_factory = session_factory or SessionLocal
        self.model = model or ChurnRiskModel()
        self.engagement = EngagementService(self.session_factory)

    def assess(self, user_id: str, now: Optional[datetime] = None) -> Optional[ChurnAssessment]:
        """
        Assess churn risk for one user.

        Args:
            user_id: User ID
            now: Reference time for recency (default: current UTC time)

        Returns:
            ChurnAssessment with every contributing factor, or None on failure
        """
        now = as_utc(now) or datetime.now(UTC)

        db = self.session_factory()
        try:
            breakdown = self.engagement.compute_breakdown(db, user_id)

            if breakdown.progress_count == 0:
                tier, risk_score, factors = self.model.evaluate(None, None, None, has_history=False)
                return ChurnAssessment(
                    user_id=user_id,
                    tier=tier,
                    risk_score=risk_score,
                    factors=factors,
                    engagement_score=breakdown.score,
                )

            last_watched = as_utc(SignalRepository(db).get_last_watched(user_id))
            days_since_active = max((now - last_watched).days, 0) if last_watched else 0
            completion_percentage = breakdown.completion_rate * 100

            tier, risk_score, factors = self.model.evaluate(
                breakdown.score,
                days_since_active,
                completion_percentage
            )

            logger.debug(f"Churn risk for {user_id}: {tier} ({risk_score})")

            return ChurnAssessment(
                user_id=user_id,
                tier=tier,
                risk_score=risk_score,
                factors=factors,
                engagement_score=breakdown.score,
                days_since_active=days_since_active,
                completion_rate=round(completion_percentage, 1),
            )
        except Exception as e:
            logger.error(f"Error predicting churn for {user_id}: {str(e)}", exc_info=True)
            return None
        finally:
            db.close()

    def predict_churn_risk(self, user_id: str, now: Optional[datetime] = None) -> Optional[str]:
        """Return just the risk tier ('high', 'medium' or 'low'), or None on failure."""
        assessment = self.assess(user_id, now=now)
        return assessment.tier if assessment else None

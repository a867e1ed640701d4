"""Additive rule model for churn risk."""
from typing import List, Optional, Tuple

from watchsignal_recommendation_service.models.results import RiskFactor

TIER_HIGH = "high"
TIER_MEDIUM = "medium"
TIER_LOW = "low"

HIGH_RISK_THRESHOLD = 60
MEDIUM_RISK_THRESHOLD = 30


class ChurnRiskModel:
    """
    Score churn risk from engagement, recency and completion.

    Each factor contributes a fixed number of points (0-100 in total); the
    per-factor points are returned so a classification can be audited.
    """

    def score_engagement(self, engagement_score: float) -> RiskFactor:
        """
        Points for low engagement.

        Args:
            engagement_score: Engagement score of the user

        Returns:
            RiskFactor worth 40 below 50, 20 below 100, else 0
        """
        if engagement_score < 50:
            points = 40
        elif engagement_score < 100:
            points = 20
        else:
            points = 0
        return RiskFactor(name="engagement", value=float(engagement_score), points=points)

    def score_recency(self, days_since_active: int) -> RiskFactor:
        """
        Points for inactivity.

        Args:
            days_since_active: Whole days since the user last watched anything

        Returns:
            RiskFactor worth 40 above 30 days, 20 above 14 days, else 0
        """
        if days_since_active > 30:
            points = 40
        elif days_since_active > 14:
            points = 20
        else:
            points = 0
        return RiskFactor(name="days_since_active", value=float(days_since_active), points=points)

    def score_completion(self, completion_percentage: float) -> RiskFactor:
        """
        Points for abandoning titles.

        Args:
            completion_percentage: Completed share of progress rows, in percent

        Returns:
            RiskFactor worth 20 below 30%, 10 below 50%, else 0
        """
        if completion_percentage < 30:
            points = 20
        elif completion_percentage < 50:
            points = 10
        else:
            points = 0
        return RiskFactor(name="completion_rate", value=float(completion_percentage), points=points)

    def tier_for(self, risk_score: int) -> str:
        """Bucket a 0-100 risk score into high / medium / low."""
        if risk_score >= HIGH_RISK_THRESHOLD:
            return TIER_HIGH
        if risk_score >= MEDIUM_RISK_THRESHOLD:
            return TIER_MEDIUM
        return TIER_LOW

    def evaluate(
        self,
        engagement_score: Optional[float],
        days_since_active: Optional[int],
        completion_percentage: Optional[float],
        has_history: bool = True
    ) -> Tuple[str, int, List[RiskFactor]]:
        """
        Classify churn risk.

        Args:
            engagement_score: Engagement score of the user
            days_since_active: Whole days since the last watched timestamp
            completion_percentage: Completion rate in percent (0-100)
            has_history: False for users with no watch progress at all

        Returns:
            (tier, risk_score, factors) tuple
        """
        if not has_history:
            # New or inactive users default to the highest tier
            return TIER_HIGH, 100, [RiskFactor(name="no_watch_history", value=0.0, points=100)]

        factors = [
            self.score_engagement(engagement_score or 0.0),
            self.score_recency(days_since_active or 0),
            self.score_completion(completion_percentage or 0.0),
        ]
        risk_score = sum(factor.points for factor in factors)
        return self.tier_for(risk_score), risk_score, factors

"""SQLAlchemy models and computed result types"""

from watchsignal_recommendation_service.models.base import Base
from watchsignal_recommendation_service.models.content_comment import ContentComment
from watchsignal_recommendation_service.models.content_item import ContentItem
from watchsignal_recommendation_service.models.results import (
    CandidateItem,
    ChurnAssessment,
    CohortAnalysis,
    ContentAnalytics,
    EngagementBreakdown,
    RiskFactor,
    UserInsights,
)
from watchsignal_recommendation_service.models.watch_event import WatchEvent
from watchsignal_recommendation_service.models.watch_progress import WatchProgress
from watchsignal_recommendation_service.models.watchlist_entry import WatchlistEntry

__all__ = [
    "Base",
    "ContentItem",
    "WatchEvent",
    "WatchProgress",
    "ContentComment",
    "WatchlistEntry",
    "CandidateItem",
    "EngagementBreakdown",
    "RiskFactor",
    "ChurnAssessment",
    "UserInsights",
    "ContentAnalytics",
    "CohortAnalysis",
]

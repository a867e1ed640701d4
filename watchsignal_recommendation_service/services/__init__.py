"""Service classes"""

from .analytics_service import AnalyticsService
from .catalog_loader_service import CatalogLoaderService
from .churn_service import ChurnRiskService
from .cold_start_service import ColdStartService
from .collaborative_service import CollaborativeFilteringService
from .content_based_service import ContentBasedRecommendationService
from .continue_watching_service import ContinueWatchingService
from .engagement_service import EngagementService
from .hybrid_service import HybridRecommendationService
from .personalized_service import PersonalizedRecommendationService
from .playback_service import PlaybackService
from .trending_service import TrendingService

__all__ = [
    "AnalyticsService",
    "CatalogLoaderService",
    "ChurnRiskService",
    "ColdStartService",
    "CollaborativeFilteringService",
    "ContentBasedRecommendationService",
    "ContinueWatchingService",
    "EngagementService",
    "HybridRecommendationService",
    "PersonalizedRecommendationService",
    "PlaybackService",
    "TrendingService",
]

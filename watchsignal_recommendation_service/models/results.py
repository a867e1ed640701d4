"""Computed (non-persisted) result types returned by the services."""
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

SOURCE_COLLABORATIVE = "collaborative"
SOURCE_CONTENT_BASED = "content_based"
SOURCE_PERSONALIZED = "personalized"
SOURCE_TRENDING = "trending"
SOURCE_COLD_START = "cold_start"
SOURCE_HYBRID = "hybrid"
SOURCE_CONTINUE_WATCHING = "continue_watching"
SOURCE_TOP_CONTENT = "top_content"


@dataclass
class CandidateItem:
    """One scored recommendation.

    Every algorithm produces these; the hybrid combiner consumes them.
    ``components`` holds per-algorithm contributions when the score is a
    combination of several sources.
    """
    content_id: str
    score: float
    source_algorithm: str
    components: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass(frozen=True)
class EngagementBreakdown:
    """Inputs and result of the engagement score formula."""
    user_id: str
    progress_count: int
    completed_count: int
    comment_count: int
    rating_count: int
    watchlist_count: int
    completion_rate: float
    score: float


@dataclass(frozen=True)
class RiskFactor:
    name: str
    value: float
    points: int


@dataclass
class ChurnAssessment:
    """Churn tier plus every factor that contributed to it."""
    user_id: str
    tier: str
    risk_score: int
    factors: List[RiskFactor] = field(default_factory=list)
    engagement_score: Optional[float] = None
    days_since_active: Optional[int] = None
    completion_rate: Optional[float] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class UserInsights:
    user_id: str
    total_films_watched: int
    total_watch_time_hours: float
    average_film_duration_minutes: int
    favorite_genres: List[str]
    favorite_directors: List[str]
    completion_rate: float
    engagement_score: float
    preferred_watching_time: Optional[str]
    last_active: Optional[datetime]


@dataclass
class ContentAnalytics:
    content_id: str
    title: str
    total_views: int
    total_completions: int
    completion_rate: float
    avg_rating: float
    total_comments: int
    total_likes: int
    added_to_watchlist_count: int


@dataclass
class CohortAnalysis:
    cohort_name: str
    user_count: int
    completion_rate: float
    avg_progress_percentage: float

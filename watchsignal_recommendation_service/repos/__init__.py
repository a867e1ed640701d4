"""Repository classes"""

from watchsignal_recommendation_service.repos.catalog_repository import CatalogRepository
from watchsignal_recommendation_service.repos.playback_repository import PlaybackRepository
from watchsignal_recommendation_service.repos.signal_repository import SignalRepository

__all__ = [
    "CatalogRepository",
    "PlaybackRepository",
    "SignalRepository",
]

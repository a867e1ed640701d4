"""Service to load catalog items from the external catalog service"""
from typing import Any, List, Dict, Optional
import time
import logging
import requests

from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from watchsignal_recommendation_service.config import get_catalog_service_url
from watchsignal_recommendation_service.models.content_item import PUBLISHED

logger = logging.getLogger(__name__)


def _split_names(value: Any) -> List[str]:
    """Accept either a list or a comma-separated string of names."""
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(',') if part.strip()]
    return [str(part).strip() for part in value if str(part).strip()]


def _to_int(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class CatalogLoaderService:
    """Service to load catalog items from the catalog microservice."""

    def __init__(self, catalog_service_url: Optional[str] = None):
        self.catalog_service_url = (catalog_service_url or get_catalog_service_url()).rstrip('/')

        self.session = requests.Session()
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        # noinspection HttpUrlsUsage
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def get_item(self, content_id: str) -> Dict:
        """Fetch single catalog item by ID"""
        url = f"{self.catalog_service_url}/content/{content_id}"
        response = self.session.get(url, timeout=10)
        response.raise_for_status()
        return response.json()

    def get_items_page(self, offset: int = 0, limit: int = 100) -> Dict:
        """
        Fetch one page of catalog items.

        Returns:
            {
                "items": [...],
                "total": 1234,
                "offset": 0,
                "limit": 100
            }
        """
        url = f"{self.catalog_service_url}/content"
        params = {'offset': offset, 'limit': limit}
        response = self.session.get(url, params=params, timeout=10)
        response.raise_for_status()
        return response.json()

    def get_all_items(self, batch_size: int = 100, max_items: Optional[int] = None) -> List[Dict]:
        """
        Fetch the whole catalog page by page.

        Args:
            batch_size: Number of items per request
            max_items: Optional limit on total items to fetch (for testing)

        Returns:
            List of raw item dictionaries
        """
        all_items: List[Dict] = []
        offset = 0

        logger.info(f"Fetching catalog items (batch size: {batch_size})...")

        while True:
            if max_items and len(all_items) >= max_items:
                logger.info(f"Reached max_items limit: {max_items}")
                break

            result = self.get_items_page(offset=offset, limit=batch_size)
            items = result.get('items', [])

            if not items:
                break

            all_items.extend(items)
            logger.info(f"  Loaded {len(all_items)} items...")

            # A short page is the last page
            if len(items) < batch_size:
                break

            offset += batch_size
            time.sleep(0.1)

        if max_items:
            all_items = all_items[:max_items]

        logger.info(f"✓ Loaded {len(all_items)} total catalog items")
        return all_items

    @staticmethod
    def normalize_item(raw: Dict) -> Dict:
        """
        Map a catalog service record onto ContentItem fields.

        Genres and cast may arrive as lists or comma-separated strings;
        runtime may be given in minutes (``runtime_min``) or seconds.
        """
        genres = raw.get('genres')
        if genres is None:
            genres = raw.get('genre')

        duration = _to_int(raw.get('duration_seconds'))
        if duration is None:
            runtime_min = _to_int(raw.get('runtime_min'))
            duration = runtime_min * 60 if runtime_min is not None else None

        return {
            'content_id': str(raw.get('content_id') or raw['id']),
            'title': raw.get('title') or raw.get('name') or '',
            'genres': _split_names(genres),
            'director': raw.get('director') or None,
            'cast_members': _split_names(raw.get('cast_members') or raw.get('cast')),
            'studio_label': raw.get('studio_label') or None,
            'release_year': _to_int(raw.get('release_year')),
            'duration_seconds': duration,
            'status': raw.get('status') or PUBLISHED,
        }

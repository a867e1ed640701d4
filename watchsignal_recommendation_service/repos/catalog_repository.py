"""Repository for the content catalog."""

import logging
from datetime import UTC, datetime
from typing import Iterable

from sqlalchemy import desc, func
from sqlalchemy.orm import Session

from watchsignal_recommendation_service.models import ContentComment, ContentItem
from watchsignal_recommendation_service.models.content_item import PUBLISHED

logger = logging.getLogger(__name__)

_ITEM_FIELDS = (
    "title",
    "genres",
    "director",
    "cast_members",
    "studio_label",
    "release_year",
    "duration_seconds",
    "status",
)


class CatalogRepository:
    """
    Repository for catalog reads plus the bulk sync used by batch scripts.

    Catalog order is ascending ``content_id``.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, content_id: str) -> ContentItem | None:
        """Get a content item by ID."""
        return self.db.query(ContentItem).filter(ContentItem.content_id == content_id).first()

    # noinspection PyTypeChecker
    def get_items(self, content_ids: Iterable[str]) -> dict[str, ContentItem]:
        """Get content items keyed by ID (missing ids are simply absent)."""
        content_ids = list(content_ids)
        if not content_ids:
            return {}
        items = self.db.query(ContentItem).filter(ContentItem.content_id.in_(content_ids)).all()
        return {item.content_id: item for item in items}

    # noinspection PyTypeChecker
    def get_published_items(self, exclude_ids: Iterable[str] | None = None) -> list[ContentItem]:
        """
        Get all published items in catalog order.

        Args:
            exclude_ids: Content ids to leave out

        Returns:
            List of ContentItem objects
        """
        query = self.db.query(ContentItem).filter(ContentItem.status == PUBLISHED)

        excluded = list(exclude_ids or [])
        if excluded:
            query = query.filter(ContentItem.content_id.notin_(excluded))

        return query.order_by(ContentItem.content_id).all()

    def get_published_ids(self, content_ids: Iterable[str]) -> set[str]:
        """Return the subset of the given ids that are published."""
        content_ids = list(content_ids)
        if not content_ids:
            return set()
        rows = (
            self.db.query(ContentItem.content_id)
            .filter(
                ContentItem.content_id.in_(content_ids),
                ContentItem.status == PUBLISHED,
            )
            .all()
        )
        return {row[0] for row in rows}

    # noinspection PyTypeChecker
    def get_published_by_release_year(self, limit: int) -> list[ContentItem]:
        """Get the newest published items (release year descending)."""
        return (
            self.db.query(ContentItem)
            .filter(ContentItem.status == PUBLISHED)
            .order_by(desc(func.coalesce(ContentItem.release_year, 0)), ContentItem.content_id)
            .limit(limit)
            .all()
        )

    def get_average_ratings(self, content_ids: Iterable[str]) -> dict[str, float]:
        """
        Average star rating per item, derived from rated comments.

        Args:
            content_ids: Items to average

        Returns:
            Dict of content id -> mean rating (items without ratings are absent)
        """
        content_ids = list(content_ids)
        if not content_ids:
            return {}
        rows = (
            self.db.query(ContentComment.content_id, func.avg(ContentComment.rating))
            .filter(
                ContentComment.content_id.in_(content_ids),
                ContentComment.rating.isnot(None),
            )
            .group_by(ContentComment.content_id)
            .all()
        )
        return {content_id: float(avg) for content_id, avg in rows if avg is not None}

    def count_items(self, status: str | None = None) -> int:
        """Count catalog items, optionally by status."""
        query = self.db.query(ContentItem)
        if status is not None:
            query = query.filter(ContentItem.status == status)
        return query.count()

    def store_item(self, item_data: dict) -> ContentItem:
        """
        Store or update one content item.

        Args:
            item_data: Dict with content_id, title and optional catalog fields

        Returns:
            ContentItem object
        """
        content_id = item_data["content_id"]

        existing = self.get_item(content_id)

        if existing:
            for field_name in _ITEM_FIELDS:
                if field_name in item_data:
                    setattr(existing, field_name, item_data[field_name])
            item = existing
        else:
            item = ContentItem(
                content_id=content_id,
                **{key: item_data.get(key) for key in _ITEM_FIELDS if item_data.get(key) is not None},
            )
            self.db.add(item)

        self.db.commit()
        self.db.refresh(item)

        return item

    def bulk_store_items(self, items_data: list[dict], batch_size: int = 100) -> int:
        """
        Replace the catalog with the given items.

        Args:
            items_data: List of item data dicts
            batch_size: Batch size for inserts

        Returns:
            Number of items stored
        """
        logger.info("Clearing existing catalog...")
        self.db.query(ContentItem).delete()
        self.db.commit()

        records = []
        for item_data in items_data:
            record = ContentItem(
                content_id=str(item_data["content_id"]),
                created_at=datetime.now(UTC),
                **{key: item_data.get(key) for key in _ITEM_FIELDS if item_data.get(key) is not None},
            )
            records.append(record)

        count = 0
        for i in range(0, len(records), batch_size):
            batch = records[i : i + batch_size]
            self.db.bulk_save_objects(batch)
            self.db.commit()
            count += len(batch)

        logger.info(f"✓ Stored {count} catalog items")
        return count

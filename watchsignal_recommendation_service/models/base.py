"""Declarative base and shared column helpers for all models"""
from datetime import UTC, datetime

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utc_now() -> datetime:
    """Column default for timestamps (evaluated per row, not at import)."""
    return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the store."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def as_naive_utc(value: datetime) -> datetime:
    """Convert to the naive UTC form that DateTime columns store."""
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)

"""Shared test fixtures and configuration for pytest."""
import pytest
import json
from datetime import UTC, datetime, timedelta
from unittest.mock import Mock
from typing import Callable, Dict, List
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from watchsignal_recommendation_service.models.base import Base
from watchsignal_recommendation_service.models import (
    ContentComment,
    ContentItem,
    WatchEvent,
    WatchlistEntry,
    WatchProgress,
)

# Fixed reference time so recency rules are reproducible
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


def naive(value: datetime) -> datetime:
    """Stored form of a UTC timestamp."""
    return value.astimezone(UTC).replace(tzinfo=None)


# ===== Database Fixtures =====

@pytest.fixture(scope="function")
def test_db_engine(tmp_path):
    """
    Create a file-backed SQLite database engine for testing.

    A file is used instead of :memory: so that sessions opened from worker
    threads (hybrid fan-out) see the same tables and rows.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'signals.db'}", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_db_engine) -> Callable[[], Session]:
    """Session factory bound to the test database."""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


@pytest.fixture(scope="function")
def test_db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def failing_session_factory() -> Mock:
    """Session factory whose sessions fail on every query."""
    session = Mock(spec=Session)
    session.query.side_effect = RuntimeError("store unavailable")
    session.add.side_effect = RuntimeError("store unavailable")
    factory = Mock(return_value=session)
    return factory


# ===== Seeding Helpers =====

@pytest.fixture
def add_item(test_db_session) -> Callable[..., ContentItem]:
    """Insert a catalog item."""
    def _add(content_id: str, title: str = None, genres: List[str] = None, director: str = None,
             cast: List[str] = None, studio: str = None, release_year: int = None,
             status: str = "published") -> ContentItem:
        item = ContentItem(
            content_id=content_id,
            title=title or f"Title {content_id}",
            genres=genres or [],
            director=director,
            cast_members=cast or [],
            studio_label=studio,
            release_year=release_year,
            status=status,
        )
        test_db_session.add(item)
        test_db_session.commit()
        return item
    return _add


@pytest.fixture
def add_progress(test_db_session) -> Callable[..., WatchProgress]:
    """Insert a watch progress row."""
    def _add(user_id: str, content_id: str, completed: bool = False, progress_seconds: int = 600,
             total_seconds: int = 6000, last_watched: datetime = None) -> WatchProgress:
        row = WatchProgress(
            user_id=user_id,
            content_id=content_id,
            progress_seconds=progress_seconds,
            total_seconds=total_seconds,
            completed=completed,
            last_watched=naive(last_watched or NOW - timedelta(days=1)),
        )
        test_db_session.add(row)
        test_db_session.commit()
        return row
    return _add


@pytest.fixture
def add_event(test_db_session) -> Callable[..., WatchEvent]:
    """Insert a playback event."""
    def _add(content_id: str, event_type: str = "play", user_id: str = None,
             created_at: datetime = None, elapsed_seconds: int = 0) -> WatchEvent:
        event = WatchEvent(
            user_id=user_id,
            content_id=content_id,
            event_type=event_type,
            elapsed_seconds=elapsed_seconds,
            session_id="session-1",
            created_at=naive(created_at or NOW - timedelta(days=1)),
        )
        test_db_session.add(event)
        test_db_session.commit()
        return event
    return _add


@pytest.fixture
def add_comment(test_db_session) -> Callable[..., ContentComment]:
    """Insert a comment, optionally carrying a star rating."""
    def _add(user_id: str, content_id: str, rating: int = None, body: str = "Nice",
             likes_count: int = 0) -> ContentComment:
        comment = ContentComment(
            user_id=user_id,
            content_id=content_id,
            rating=rating,
            body=body,
            likes_count=likes_count,
        )
        test_db_session.add(comment)
        test_db_session.commit()
        return comment
    return _add


@pytest.fixture
def add_watchlist(test_db_session) -> Callable[..., WatchlistEntry]:
    """Insert a watchlist entry."""
    def _add(user_id: str, content_id: str) -> WatchlistEntry:
        entry = WatchlistEntry(user_id=user_id, content_id=content_id)
        test_db_session.add(entry)
        test_db_session.commit()
        return entry
    return _add


# ===== Sample Data Fixtures =====

@pytest.fixture
def sample_catalog_list() -> List[Dict]:
    """Catalog items as they would be passed to the catalog repository."""
    return [
        {
            'content_id': 'c1',
            'title': 'Lagos Nights',
            'genres': ['Drama', 'Crime'],
            'director': 'Kunle Afolayan',
            'cast': ['Actor A', 'Actor B'],
            'studio': 'Golden Effects',
            'release_year': 2019,
        },
        {
            'content_id': 'c2',
            'title': 'The Wedding Party',
            'genres': ['Comedy', 'Romance'],
            'director': 'Kemi Adetiba',
            'cast': ['Actor C'],
            'studio': 'EbonyLife',
            'release_year': 2016,
        },
        {
            'content_id': 'c3',
            'title': 'King of Boys',
            'genres': ['Drama', 'Crime', 'Thriller'],
            'director': 'Kemi Adetiba',
            'cast': ['Actor B', 'Actor D'],
            'studio': 'EbonyLife',
            'release_year': 2018,
        },
        {
            'content_id': 'c4',
            'title': 'October 1',
            'genres': ['Thriller', 'Drama'],
            'director': 'Kunle Afolayan',
            'cast': ['Actor E'],
            'studio': 'Golden Effects',
            'release_year': 2014,
        },
        {
            'content_id': 'c5',
            'title': 'Chief Daddy',
            'genres': ['Comedy'],
            'director': 'Niyi Akinmolayan',
            'cast': ['Actor C', 'Actor F'],
            'studio': 'EbonyLife',
            'release_year': 2018,
        },
        {
            'content_id': 'c6',
            'title': 'Unreleased Cut',
            'genres': ['Drama'],
            'director': 'Kunle Afolayan',
            'cast': ['Actor A'],
            'studio': 'Golden Effects',
            'release_year': 2020,
            'status': 'draft',
        },
    ]


@pytest.fixture
def sample_catalog(add_item, sample_catalog_list) -> List[ContentItem]:
    """Create the sample catalog in the test database.

    c1-c5 are published, c6 is a draft.
    """
    return [add_item(**data) for data in sample_catalog_list]


# ===== Temporary Directory Fixtures =====

@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary directory for test data."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    return data_dir


# ===== Configuration Fixtures =====

@pytest.fixture
def mock_config(monkeypatch):
    """Mock configuration values."""
    monkeypatch.setenv('DATABASE_URL', 'sqlite:///:memory:')
    monkeypatch.setenv('CATALOG_SERVICE_URL', 'http://catalog.test/api')
    monkeypatch.setenv('RECOMMENDATION_DEFAULT_LIMIT', '5')
    monkeypatch.setenv('TRENDING_WINDOW_DAYS', '14')
    monkeypatch.setenv('HYBRID_MAX_WORKERS', '2')


@pytest.fixture
def mock_local_settings(tmp_path):
    """Write a local.settings.json file and return its directory."""
    settings = {
        "Values": {
            "DATABASE_URL": "sqlite:///from-settings.db",
            "CATALOG_SERVICE_URL": "http://settings.test/api",
            "TRENDING_WINDOW_DAYS": "3"
        }
    }

    settings_file = tmp_path / "local.settings.json"
    with open(settings_file, 'w') as f:
        json.dump(settings, f)

    return tmp_path


@pytest.fixture
def mock_requests_session(requests_mock):
    """Mock requests session with requests_mock."""
    return requests_mock


@pytest.fixture
def reference_now() -> datetime:
    """Fixed 'now' shared by the seeding helpers."""
    return NOW


@pytest.fixture
def viewing_scenario(sample_catalog, add_progress, add_event, add_comment, add_watchlist):
    """
    Viewing signals over the sample catalog.

    u1: completed c1, halfway into c2, rated c1/c2 highly and c5 poorly,
        saved c4 to the watchlist
    u2: c1, c3 and the draft c6
    u3: c2, c3, c4; rated c4
    u4: started c5 forty days ago and never came back
    """
    add_progress('u1', 'c1', completed=True, progress_seconds=6000)
    add_progress('u1', 'c2', progress_seconds=600)
    add_progress('u2', 'c1', completed=True, progress_seconds=6000)
    add_progress('u2', 'c3')
    add_progress('u2', 'c6')
    add_progress('u3', 'c2', completed=True, progress_seconds=6000)
    add_progress('u3', 'c3')
    add_progress('u3', 'c4')
    add_progress('u4', 'c5', last_watched=NOW - timedelta(days=40))

    add_comment('u1', 'c1', rating=5)
    add_comment('u1', 'c2', rating=4)
    add_comment('u1', 'c5', rating=2)
    add_comment('u3', 'c4', rating=4, likes_count=2)

    add_watchlist('u1', 'c4')

    add_event('c4', 'play', user_id='u2', created_at=NOW - timedelta(days=1))
    add_event('c4', 'play', user_id='u3', created_at=NOW - timedelta(days=2))
    add_event('c4', 'play', user_id=None, created_at=NOW - timedelta(days=3))
    add_event('c4', 'complete', user_id='u2', created_at=NOW - timedelta(days=1))
    add_event('c3', 'play', user_id='u2', created_at=NOW - timedelta(days=2))
    add_event('c3', 'play', user_id='u3', created_at=NOW - timedelta(days=2))
    add_event('c5', 'play', user_id='u1', created_at=NOW - timedelta(hours=1))
    add_event('c5', 'play', user_id=None, created_at=NOW - timedelta(days=3))
    for _ in range(5):
        add_event('c6', 'play', user_id=None, created_at=NOW - timedelta(days=1))
    add_event('c2', 'play', user_id='u4', created_at=NOW - timedelta(days=10))

    return NOW

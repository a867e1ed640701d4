"""Unit tests for watchsignal_recommendation_service.services.collaborative_service."""
import pytest

from watchsignal_recommendation_service.services.collaborative_service import CollaborativeFilteringService


@pytest.fixture
def collaborative_service(session_factory):
    return CollaborativeFilteringService(session_factory)


class TestCollaborativeRecommendations:
    """Tests for get_recommendations method."""

    def test_neighbour_items_in_discovery_order(self, collaborative_service, viewing_scenario):
        """Test candidates come from neighbours, in (user id, content id) order."""
        # Act
        result = collaborative_service.get_recommendations('u1', n=10)

        # Assert
        # u2 contributes c3 (c6 is a draft), u3 contributes c4
        assert [r.content_id for r in result] == ['c3', 'c4']
        assert [r.score for r in result] == [10.0, 9.0]
        assert all(r.source_algorithm == 'collaborative' for r in result)

    def test_never_returns_watched_items(self, collaborative_service, viewing_scenario):
        """Test that the seed set is excluded."""
        result = collaborative_service.get_recommendations('u3', n=10)

        assert not {'c2', 'c3', 'c4'} & {r.content_id for r in result}
        assert [r.content_id for r in result] == ['c1']

    def test_truncates_to_n(self, collaborative_service, viewing_scenario):
        """Test truncation keeps the head of the discovery order."""
        result = collaborative_service.get_recommendations('u1', n=1)

        assert [r.content_id for r in result] == ['c3']

    def test_deterministic(self, collaborative_service, viewing_scenario):
        """Test repeated calls give identical results."""
        first = collaborative_service.get_recommendations('u1')
        second = collaborative_service.get_recommendations('u1')

        assert first == second

    def test_no_history_returns_empty(self, collaborative_service, viewing_scenario):
        """Test a brand-new user."""
        assert collaborative_service.get_recommendations('new-user') == []

    def test_no_neighbours_returns_empty(self, collaborative_service, viewing_scenario):
        """Test a user whose items nobody else watched."""
        assert collaborative_service.get_recommendations('u4') == []

    def test_store_failure_returns_empty(self, failing_session_factory):
        """Test that store errors are converted to an empty list."""
        service = CollaborativeFilteringService(failing_session_factory)

        assert service.get_recommendations('u1') == []

"""Unit tests for watchsignal_recommendation_service.ml.scoring."""
import pytest

from watchsignal_recommendation_service.ml.scoring import (
    HYBRID_WEIGHTS,
    cold_start_score,
    content_similarity_score,
    personalization_score,
    rank_decay_contribution,
    rank_order_score,
    top_genres,
)


class TestContentSimilarityScore:
    """Tests for content_similarity_score function."""

    def test_genre_and_director_outscore_genre_only(self):
        """Test a shared genre plus director (70) ranks above a shared genre alone (40)."""
        # Arrange
        source = (['Drama', 'Romance'], 'X', [], None)

        # Act
        score_a = content_similarity_score(*source, ['Drama'], 'X', [], None)
        score_b = content_similarity_score(*source, ['Romance'], 'Y', [], None)

        # Assert
        assert score_a == 70
        assert score_b == 40
        assert score_a > score_b

    def test_all_attributes_match(self):
        """Test the maximum score."""
        result = content_similarity_score(
            ['Drama'], 'X', ['A'], 'Studio',
            ['Drama', 'Crime'], 'X', ['A', 'B'], 'Studio'
        )

        assert result == 100

    def test_multiple_shared_genres_count_once(self):
        """Test that any overlap is worth a flat 40."""
        result = content_similarity_score(
            ['Drama', 'Crime'], None, [], None,
            ['Drama', 'Crime'], None, [], None
        )

        assert result == 40

    def test_missing_director_and_studio_never_match(self):
        """Test that two empty directors or studios are not a match."""
        result = content_similarity_score(
            [], None, [], None,
            [], None, [], None
        )

        assert result == 0

    def test_cast_overlap(self):
        """Test shared cast member contributes 20."""
        result = content_similarity_score([], None, ['A', 'B'], None, [], None, ['B'], None)

        assert result == 20


class TestTopGenres:
    """Tests for top_genres function."""

    def test_top_genres_by_frequency(self):
        """Test the three most frequent genres, most frequent first."""
        # Arrange
        genre_lists = [
            ['Drama', 'Crime'],
            ['Drama', 'Comedy'],
            ['Drama', 'Crime', 'Thriller'],
            ['Comedy'],
            ['Romance'],
        ]

        # Act
        result = top_genres(genre_lists)

        # Assert
        assert result[0] == 'Drama'
        assert set(result[1:]) == {'Crime', 'Comedy'}

    def test_top_genres_handles_missing_lists(self):
        """Test that None genre lists are skipped."""
        assert top_genres([None, ['Drama']]) == ['Drama']

    def test_top_genres_empty(self):
        """Test no genres at all."""
        assert top_genres([]) == []


class TestPersonalizationScore:
    """Tests for personalization_score function."""

    def test_rank_bonuses(self):
        """Test rank 0 -> 90, rank 1 -> 60, rank 2 -> 30."""
        preferred = ['Drama', 'Comedy', 'Thriller']

        assert personalization_score(['Drama'], preferred) == 90
        assert personalization_score(['Comedy'], preferred) == 60
        assert personalization_score(['Thriller'], preferred) == 30

    def test_contributions_add_up(self):
        """Test a candidate matching two preferred genres gets both bonuses."""
        result = personalization_score(['Drama', 'Thriller', 'Romance'], ['Drama', 'Comedy', 'Thriller'])

        assert result == 120

    def test_no_match(self):
        """Test that unrelated genres score zero."""
        assert personalization_score(['Horror'], ['Drama']) == 0


class TestColdStartScore:
    """Tests for cold_start_score function."""

    def test_rating_and_age_terms(self):
        """Test avg_rating*50 + age*5."""
        # 4.5*50 + (2025-2019)*5
        assert cold_start_score(4.5, 2019, 2025) == pytest.approx(255.0)

    def test_unrated_item(self):
        """Test that a missing rating counts as zero."""
        assert cold_start_score(None, 2015, 2025) == pytest.approx(50.0)

    def test_missing_year_counts_as_current(self):
        """Test that a missing release year adds no age term."""
        assert cold_start_score(4.0, None, 2025) == pytest.approx(200.0)

    def test_future_release_year_clamps_at_zero(self):
        """Test that the score never goes negative."""
        assert cold_start_score(None, 2030, 2025) == 0.0


class TestRankHelpers:
    """Tests for rank_decay_contribution and rank_order_score."""

    def test_rank_decay_contribution(self):
        """Test linear decay from weight*100 at the head of the list."""
        assert rank_decay_contribution(0.4, 0, 10) == pytest.approx(40.0)
        assert rank_decay_contribution(0.4, 5, 10) == pytest.approx(20.0)
        assert rank_decay_contribution(0.2, 9, 10) == pytest.approx(2.0)

    def test_rank_decay_zero_limit(self):
        """Test that a zero limit contributes nothing."""
        assert rank_decay_contribution(0.4, 0, 0) == 0.0

    def test_rank_order_score(self):
        """Test n - idx scoring."""
        assert rank_order_score(0, 5) == 5.0
        assert rank_order_score(4, 5) == 1.0
        assert rank_order_score(7, 5) == 0.0

    def test_hybrid_weights_sum_to_one(self):
        """Test that the three source weights are normalised."""
        assert sum(HYBRID_WEIGHTS.values()) == pytest.approx(1.0)

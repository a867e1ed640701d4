"""Compute user similarity and engagement scores from viewing signals."""
import numpy as np
from typing import Dict, Iterable, List, Set, Tuple
from sklearn.preprocessing import MultiLabelBinarizer  # type: ignore
import logging

logger = logging.getLogger(__name__)

COMPLETION_WEIGHT = 30
COMMENT_WEIGHT = 10
RATING_WEIGHT = 15
WATCHLIST_WEIGHT = 5


def jaccard_similarity(set_a: Iterable[str], set_b: Iterable[str]) -> float:
    """
    Jaccard index |A ∩ B| / |A ∪ B|.

    Returns 0.0 when either set is empty.
    """
    set_a, set_b = set(set_a), set(set_b)
    if not set_a or not set_b:
        return 0.0
    return len(set_a & set_b) / len(set_a | set_b)


def completion_rate(completed_count: int, total_count: int) -> float:
    """Completed / total progress rows, 0.0 when there are no rows."""
    if total_count <= 0:
        return 0.0
    return completed_count / total_count


def engagement_score(
    completion: float,
    comment_count: int,
    rating_count: int,
    watchlist_count: int
) -> float:
    """
    Weighted engagement score.

    Args:
        completion: Completion rate as a fraction in [0, 1]
        comment_count: Number of comments (rated or not)
        rating_count: Number of star ratings
        watchlist_count: Number of watchlist entries

    Returns:
        Non-negative engagement score
    """
    return (
        completion * COMPLETION_WEIGHT
        + comment_count * COMMENT_WEIGHT
        + rating_count * RATING_WEIGHT
        + watchlist_count * WATCHLIST_WEIGHT
    )


class SimilarityComputer:
    """Compute user-user similarity matrices from watched-content sets."""

    def build_user_item_matrix(
        self,
        watch_sets: Dict[str, Set[str]]
    ) -> Tuple[np.ndarray, List[str], List[str]]:
        """
        Multi-hot encode each user's watched content ids.

        Args:
            watch_sets: Dict of user id -> set of content ids

        Returns:
            (matrix, user_ids, content_ids) with matrix shape (n_users x n_items)
        """
        user_ids = list(watch_sets.keys())
        encoder = MultiLabelBinarizer()
        matrix = encoder.fit_transform([sorted(watch_sets[user_id]) for user_id in user_ids])
        content_ids = [str(content_id) for content_id in encoder.classes_]

        logger.debug(f"User-item matrix: {matrix.shape}")
        return matrix.astype(float), user_ids, content_ids

    def compute_jaccard_matrix(self, matrix: np.ndarray) -> np.ndarray:
        """
        Pairwise Jaccard similarity between the rows of a binary matrix.

        Rows with no items have similarity 0 to every row, including
        themselves.

        Args:
            matrix: Binary user-item matrix (n_users x n_items)

        Returns:
            Similarity matrix (n_users x n_users), values in [0, 1]
        """
        if matrix.shape[0] == 0:
            return np.zeros((0, 0))

        intersection = matrix @ matrix.T
        sizes = matrix.sum(axis=1)
        union = sizes[:, None] + sizes[None, :] - intersection

        similarity = np.zeros_like(intersection, dtype=float)
        np.divide(intersection, union, out=similarity, where=union > 0)

        empty = sizes == 0
        similarity[empty, :] = 0.0
        similarity[:, empty] = 0.0
        return similarity

    def rank_similar_users(
        self,
        user_id: str,
        watch_sets: Dict[str, Set[str]],
        n: int = 10
    ) -> List[Tuple[str, float]]:
        """
        Rank the other users by similarity to ``user_id``.

        Args:
            user_id: Target user
            watch_sets: Dict of user id -> watched content ids (must include target)
            n: Maximum number of users to return

        Returns:
            List of (user_id, similarity) pairs, highest first, ties by user id.
            Users with zero similarity are left out.
        """
        if user_id not in watch_sets or not watch_sets[user_id] or n <= 0:
            return []

        matrix, user_ids, _ = self.build_user_item_matrix(watch_sets)
        similarity = self.compute_jaccard_matrix(matrix)
        target_idx = user_ids.index(user_id)

        ranked = [
            (other_id, float(similarity[target_idx, idx]))
            for idx, other_id in enumerate(user_ids)
            if idx != target_idx and similarity[target_idx, idx] > 0
        ]
        ranked.sort(key=lambda pair: (-pair[1], pair[0]))
        return ranked[:n]

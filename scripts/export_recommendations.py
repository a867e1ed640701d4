"""
Export hybrid recommendations for every known user to CSV.
Users without any recommendation fall back to the cold-start list.
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import json
import logging
import argparse
from datetime import UTC, datetime
from typing import Callable, Optional

import pandas as pd
from sqlalchemy.orm import Session

from watchsignal_recommendation_service.config import get_default_limit
from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.repos import SignalRepository
from watchsignal_recommendation_service.services import ColdStartService, HybridRecommendationService

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = ["user_id", "rank", "content_id", "score", "source_algorithm", "components"]


def get_user_ids(session_factory: Callable[[], Session]) -> list[str]:
    """All users with at least one progress row."""
    db = session_factory()
    try:
        return SignalRepository(db).get_all_user_ids()
    finally:
        db.close()


def build_recommendations_frame(
    session_factory: Callable[[], Session],
    n: int,
    now: Optional[datetime] = None,
    user_ids: Optional[list[str]] = None
) -> pd.DataFrame:
    """
    Compute recommendations for each user.

    Args:
        session_factory: Session factory for the signal store
        n: Recommendations per user
        now: Reference time for trending and cold start
        user_ids: Users to export (default: all users with progress)

    Returns:
        One row per (user, recommendation), ranked from 1
    """
    now = now or datetime.now(UTC)
    hybrid = HybridRecommendationService(session_factory)
    cold_start = ColdStartService(session_factory)

    if user_ids is None:
        user_ids = get_user_ids(session_factory)

    logger.info(f"Computing recommendations for {len(user_ids)} users (n={n})...")

    # The cold-start list does not depend on the user
    cold_start_items = None
    rows = []

    for i, user_id in enumerate(user_ids):
        items = hybrid.get_recommendations(user_id, n=n, now=now)

        if not items:
            if cold_start_items is None:
                cold_start_items = cold_start.get_recommendations(n=n, now=now)
            items = cold_start_items

        for rank, item in enumerate(items, 1):
            rows.append({
                "user_id": user_id,
                "rank": rank,
                "content_id": item.content_id,
                "score": item.score,
                "source_algorithm": item.source_algorithm,
                "components": json.dumps(item.components, sort_keys=True),
            })

        if (i + 1) % 100 == 0:
            logger.info(f"  Processed {i + 1}/{len(user_ids)} users...")

    logger.info(f"✓ Computed {len(rows)} recommendations")
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description="Export hybrid recommendations for every user"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="data/exports/recommendations.csv",
        help="Output CSV path (default: data/exports/recommendations.csv)"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Recommendations per user (default: RECOMMENDATION_DEFAULT_LIMIT)"
    )

    args = parser.parse_args()
    n = args.limit if args.limit is not None else get_default_limit()
    output_path = project_root / args.output

    logger.info("=" * 70)
    logger.info("EXPORTING RECOMMENDATIONS")
    logger.info("=" * 70)
    logger.info(f"Output: {output_path}")
    logger.info(f"Limit per user: {n}")

    try:
        df = build_recommendations_frame(SessionLocal, n)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)

        logger.info("\n" + "=" * 70)
        logger.info("✓ EXPORT COMPLETE")
        logger.info("=" * 70)
        logger.info(f"Users: {df['user_id'].nunique()}")
        logger.info(f"Rows: {len(df)}")

    except Exception as e:
        logger.error(f"Error exporting recommendations: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""
Classify every known user by churn risk and write the report to CSV.
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import logging
import argparse
from datetime import UTC, datetime
from typing import Callable, Optional

import pandas as pd
from sqlalchemy.orm import Session

from watchsignal_recommendation_service.models.database import SessionLocal
from watchsignal_recommendation_service.repos import SignalRepository
from watchsignal_recommendation_service.services import ChurnRiskService

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

REPORT_COLUMNS = [
    "user_id",
    "tier",
    "risk_score",
    "engagement_score",
    "days_since_active",
    "completion_rate",
    "factors",
]


def format_factors(factors) -> str:
    """Render risk factors as ``name=points`` pairs separated by semicolons."""
    return ";".join(f"{factor.name}={factor.points}" for factor in factors)


def build_churn_report(
    session_factory: Callable[[], Session],
    now: Optional[datetime] = None
) -> pd.DataFrame:
    """
    Assess churn risk for every user with progress.

    Users whose assessment fails are left out of the report.

    Returns:
        One row per user, highest risk first
    """
    now = now or datetime.now(UTC)
    service = ChurnRiskService(session_factory)

    db = session_factory()
    try:
        user_ids = SignalRepository(db).get_all_user_ids()
    finally:
        db.close()

    logger.info(f"Assessing churn risk for {len(user_ids)} users...")

    rows = []
    for user_id in user_ids:
        assessment = service.assess(user_id, now=now)
        if assessment is None:
            logger.warning(f"  Skipping {user_id}: assessment failed")
            continue

        rows.append({
            "user_id": user_id,
            "tier": assessment.tier,
            "risk_score": assessment.risk_score,
            "engagement_score": assessment.engagement_score,
            "days_since_active": assessment.days_since_active,
            "completion_rate": assessment.completion_rate,
            "factors": format_factors(assessment.factors),
        })

    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    df = df.sort_values(["risk_score", "user_id"], ascending=[False, True], kind="stable")

    logger.info(f"✓ Assessed {len(df)} users")
    return df.reset_index(drop=True)


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description="Compute a churn risk report for every user"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="data/exports/churn_report.csv",
        help="Output CSV path (default: data/exports/churn_report.csv)"
    )

    args = parser.parse_args()
    output_path = project_root / args.output

    logger.info("=" * 70)
    logger.info("COMPUTING CHURN REPORT")
    logger.info("=" * 70)
    logger.info(f"Output: {output_path}")

    try:
        df = build_churn_report(SessionLocal)

        output_path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output_path, index=False)

        logger.info("\n" + "=" * 70)
        logger.info("✓ CHURN REPORT COMPLETE")
        logger.info("=" * 70)
        for tier, count in df["tier"].value_counts().sort_index().items():
            logger.info(f"{tier}: {count}")

    except Exception as e:
        logger.error(f"Error computing churn report: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

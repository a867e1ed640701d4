"""
Populate the signal store with catalog items and viewing signals.
Loads the catalog from CSV or the catalog service, then the signal exports
(progress, events, comments, watchlist) when they are present.
"""

import sys
from pathlib import Path

# Add parent directory to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

import logging
import pandas as pd
import numpy as np
import argparse
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from watchsignal_recommendation_service.models.database import SessionLocal, init_db
from watchsignal_recommendation_service.repos import CatalogRepository, PlaybackRepository
from watchsignal_recommendation_service.services import CatalogLoaderService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

CATALOG_FILE = 'content_items.csv'

# file name -> (timestamp columns, integer columns, PlaybackRepository loader)
SIGNAL_FILES = {
    'watch_progress.csv': (('last_watched',), ('progress_seconds', 'total_seconds'), 'bulk_store_progress'),
    'watch_events.csv': (('created_at',), ('elapsed_seconds',), 'bulk_store_events'),
    'content_comments.csv': (('created_at',), ('rating', 'likes_count'), 'bulk_store_comments'),
    'watchlist.csv': (('added_at',), (), 'bulk_store_watchlist'),
}

ID_COLUMNS = ('user_id', 'content_id', 'session_id')

# Read ids as text so numeric ids in columns with blanks are not parsed as floats
ID_DTYPES = {column: str for column in ID_COLUMNS}
CATALOG_ID_DTYPES = {'id': str, 'content_id': str}


def clean_dataframe_for_db(df: pd.DataFrame) -> pd.DataFrame:
    """
    Clean DataFrame by replacing NaN/NA values with None for database compatibility.

    Args:
        df: Input DataFrame

    Returns:
        Cleaned DataFrame
    """
    df = df.astype(object)
    df = df.replace({np.nan: None, pd.NA: None})
    df = df.where(pd.notnull(df), None)

    return df


def prepare_records(
    df: pd.DataFrame,
    timestamp_columns: Iterable[str] = (),
    int_columns: Iterable[str] = ()
) -> List[Dict]:
    """
    Convert an export DataFrame into dict records the repositories accept.

    Timestamps become UTC datetimes, integer columns become int, ID columns
    become strings and missing values become None.
    """
    df = clean_dataframe_for_db(df)

    for column in timestamp_columns:
        if column in df.columns:
            parsed = pd.to_datetime(df[column], utc=True, errors='coerce')
            df[column] = pd.Series(
                [ts.to_pydatetime() if pd.notna(ts) else None for ts in parsed],
                index=df.index,
                dtype=object
            )

    for column in int_columns:
        if column in df.columns:
            df[column] = pd.Series(
                [int(value) if value is not None else None for value in df[column]],
                index=df.index,
                dtype=object
            )

    for column in ID_COLUMNS:
        if column in df.columns:
            df[column] = pd.Series(
                [str(value) if value is not None else None for value in df[column]],
                index=df.index,
                dtype=object
            )

    return df.to_dict('records')


def load_catalog_from_csv(session_factory: Callable[[], Session], input_dir: Path) -> int:
    """
    Load catalog items from CSV and replace the stored catalog.

    Args:
        session_factory: Session factory for the signal store
        input_dir: Directory containing content_items.csv

    Returns:
        Number of items stored
    """
    logger.info("="*70)
    logger.info("LOADING CATALOG FROM CSV")
    logger.info("="*70)

    catalog_path = input_dir / CATALOG_FILE

    if not catalog_path.exists():
        raise FileNotFoundError(
            f"Catalog file not found: {catalog_path}\n"
            "Export the catalog or use --from-service."
        )

    items_df = pd.read_csv(catalog_path, dtype=CATALOG_ID_DTYPES)
    logger.info(f"Loaded {len(items_df)} items from {catalog_path}")

    raw_items = clean_dataframe_for_db(items_df).to_dict('records')
    items = [CatalogLoaderService.normalize_item(raw) for raw in raw_items]

    return _store_catalog(session_factory, items)


def load_catalog_from_service(
    session_factory: Callable[[], Session],
    loader: CatalogLoaderService,
    max_items: Optional[int] = None
) -> int:
    """
    Fetch the catalog from the catalog service and replace the stored catalog.

    Returns:
        Number of items stored
    """
    logger.info("="*70)
    logger.info("LOADING CATALOG FROM SERVICE")
    logger.info("="*70)

    raw_items = loader.get_all_items(max_items=max_items)
    items = [loader.normalize_item(raw) for raw in raw_items]

    return _store_catalog(session_factory, items)


def _store_catalog(session_factory: Callable[[], Session], items: List[Dict]) -> int:
    db = session_factory()
    try:
        count = CatalogRepository(db).bulk_store_items(items)
    finally:
        db.close()

    logger.info(f"✓ Synced {count} catalog items to database")
    return count


def load_signals(session_factory: Callable[[], Session], input_dir: Path) -> Dict[str, int]:
    """
    Load every signal export found in ``input_dir``.

    Missing files are skipped with a warning.

    Returns:
        Mapping of file name to number of rows stored
    """
    logger.info("\n" + "="*70)
    logger.info("LOADING VIEWING SIGNALS")
    logger.info("="*70)

    counts: Dict[str, int] = {}

    db = session_factory()
    try:
        repo = PlaybackRepository(db)

        for file_name, (timestamp_columns, int_columns, loader_name) in SIGNAL_FILES.items():
            path = input_dir / file_name
            if not path.exists():
                logger.warning(f"  {file_name} not found, skipping")
                continue

            df = pd.read_csv(path, dtype=ID_DTYPES)
            logger.info(f"Loaded {len(df)} rows from {path}")

            records = prepare_records(df, timestamp_columns, int_columns)
            counts[file_name] = getattr(repo, loader_name)(records)
    finally:
        db.close()

    return counts


def main():
    """Main execution function."""
    parser = argparse.ArgumentParser(
        description='Populate the signal store with catalog items and viewing signals'
    )
    parser.add_argument(
        '--input-dir',
        type=str,
        default='data/raw',
        help='Input directory with CSV exports (default: data/raw)'
    )
    parser.add_argument(
        '--from-service',
        action='store_true',
        help='Load the catalog from the catalog service instead of CSV'
    )
    parser.add_argument(
        '--max-items',
        type=int,
        default=None,
        help='Limit number of catalog items fetched from the service (for testing)'
    )
    parser.add_argument(
        '--skip-signals',
        action='store_true',
        help='Skip loading signal exports (catalog only)'
    )

    args = parser.parse_args()

    input_dir = project_root / args.input_dir

    logger.info("="*70)
    logger.info("POPULATE DATABASE")
    logger.info("="*70)
    logger.info(f"Input directory: {input_dir}")
    logger.info(f"Catalog source: {'service' if args.from_service else 'csv'}")
    logger.info(f"Skip signals: {args.skip_signals}")
    logger.info("="*70)

    try:
        init_db()
        logger.info("✓ Tables created")

        if args.from_service:
            item_count = load_catalog_from_service(SessionLocal, CatalogLoaderService(), args.max_items)
        else:
            item_count = load_catalog_from_csv(SessionLocal, input_dir)

        signal_counts: Dict[str, int] = {}
        if not args.skip_signals:
            signal_counts = load_signals(SessionLocal, input_dir)
        else:
            logger.info("\n⊘ Skipping signal loading")

        logger.info("\n" + "="*70)
        logger.info("✓ DATABASE POPULATION COMPLETE")
        logger.info("="*70)
        logger.info(f"Catalog items: {item_count}")
        for file_name, count in signal_counts.items():
            logger.info(f"{file_name}: {count}")

    except Exception as e:
        logger.error(f"Error during database population: {str(e)}", exc_info=True)
        sys.exit(1)


if __name__ == '__main__':
    main()

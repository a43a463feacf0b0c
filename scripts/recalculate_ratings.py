#!/usr/bin/env python3
"""
Rating Summary Recalculation Script

Rebuilds average_rating and total_ratings on resources from their active
ratings. Run it after bulk imports or manual edits to the ratings table.

Usage:
    # From project root with venv activated:
    python scripts/recalculate_ratings.py

    # Options:
    python scripts/recalculate_ratings.py --resource-id 42   # One resource only
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from app.database import SessionLocal
from app.exceptions import RatingEngineError
from app.services.ratings import recalculate_all, recompute_resource

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def recalculate(resource_id: int | None = None) -> int:
    """
    Recalculate one resource's summary, or all of them.

    Returns:
        Number of resources updated
    """
    db = SessionLocal()
    try:
        if resource_id is not None:
            summary = recompute_resource(db, resource_id)
            logger.info(
                f"Resource {resource_id}: average={summary.average_rating} "
                f"total={summary.total_ratings}"
            )
            return 1
        return recalculate_all(db)
    finally:
        db.close()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Recalculate resource rating summaries"
    )
    parser.add_argument(
        "--resource-id",
        type=int,
        default=None,
        help="Only recalculate this resource (default: all resources)"
    )

    args = parser.parse_args()

    logger.info("Starting rating summary recalculation...")
    try:
        updated = recalculate(args.resource_id)
    except RatingEngineError as e:
        logger.error(f"Recalculation failed: {e.message}")
        return 1

    logger.info(f"Done. Resources updated: {updated}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

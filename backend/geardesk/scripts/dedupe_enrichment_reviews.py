"""Keep a single pending enrichment review per catalog item.

Usage:
    python -m geardesk.scripts.dedupe_enrichment_reviews [--dry-run]
"""

import argparse
import asyncio
import logging
import sys

from geardesk.core.config import get_settings
from geardesk.core.database import async_session
from geardesk.core.logging_config import setup_logging
from geardesk.services.enrichment import dedupe_pending_reviews

logger = logging.getLogger("geardesk.scripts.dedupe_enrichment_reviews")


async def run(dry_run: bool) -> int:
    async with async_session() as db:
        superseded = await dedupe_pending_reviews(db, dry_run=dry_run)

    verb = "Would supersede" if dry_run else "Superseded"
    logger.info(f"[ENRICH] {verb} {superseded} duplicate pending reviews")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Supersede duplicate pending enrichment reviews")
    parser.add_argument("--dry-run", action="store_true", help="Count duplicates without changing them")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    return asyncio.run(run(args.dry_run))


if __name__ == "__main__":
    sys.exit(main())

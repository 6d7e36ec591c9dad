"""Match catalog lenses against Lensfun and fill in or suggest lens specs.

Usage:
    python -m geardesk.scripts.enrich_catalog [--dry-run] [--force]
"""

import argparse
import asyncio
import logging
import sys

from geardesk.core.config import get_settings
from geardesk.core.database import async_session
from geardesk.core.logging_config import setup_logging
from geardesk.services.enrichment import enrich_catalog

logger = logging.getLogger("geardesk.scripts.enrich_catalog")


async def run(dry_run: bool, force: bool) -> int:
    async with async_session() as db:
        stats = await enrich_catalog(db, dry_run=dry_run, force=force)

    for key, value in stats.to_dict().items():
        print(f"  {key:<14} {value}")
    if dry_run:
        print("Dry run: no changes were saved")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Enrich catalog lenses from Lensfun")
    parser.add_argument("--dry-run", action="store_true", help="Report without saving")
    parser.add_argument("--force", action="store_true", help="Re-process lenses that already have specs")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    return asyncio.run(run(args.dry_run, args.force))


if __name__ == "__main__":
    sys.exit(main())

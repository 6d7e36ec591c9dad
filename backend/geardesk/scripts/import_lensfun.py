"""Import the Lensfun lens database into ``lensfun_lenses``.

Usage:
    python -m geardesk.scripts.import_lensfun [--offline] [--data-dir DIR] [--dry-run]
"""

import argparse
import asyncio
import logging
import sys

from geardesk.core.config import get_settings
from geardesk.core.database import async_session
from geardesk.core.logging_config import setup_logging
from geardesk.services.lensfun_import import (
    download_lensfun_files,
    load_lensfun_directory,
    upsert_lenses,
)

logger = logging.getLogger("geardesk.scripts.import_lensfun")


async def run(data_dir: str, offline: bool, dry_run: bool) -> int:
    if not offline:
        fetched = await download_lensfun_files(data_dir)
        logger.info(f"[LENSFUN] Downloaded {fetched} files into {data_dir}")

    lenses = load_lensfun_directory(data_dir)
    if not lenses:
        logger.error(f"[LENSFUN] No lenses found in {data_dir}")
        return 1

    async with async_session() as db:
        stats = await upsert_lenses(db, lenses, dry_run=dry_run)

    if dry_run:
        logger.info(f"[LENSFUN] Dry run: parsed {stats.parsed} lenses, nothing written")
    else:
        logger.info(
            f"[LENSFUN] Parsed {stats.parsed}, inserted {stats.inserted}, updated {stats.updated}"
        )
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Import the Lensfun lens database")
    parser.add_argument("--offline", action="store_true", help="Use XML files already in --data-dir")
    parser.add_argument("--data-dir", default=None, help="Directory holding the XML files (default: LENSFUN_DATA_DIR)")
    parser.add_argument("--dry-run", action="store_true", help="Parse only, do not write")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    data_dir = args.data_dir or settings.lensfun_data_dir
    return asyncio.run(run(data_dir, args.offline, args.dry_run))


if __name__ == "__main__":
    sys.exit(main())

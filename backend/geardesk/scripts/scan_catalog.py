"""Rescan the catalog for blocking issues and print the open summary.

Usage:
    python -m geardesk.scripts.scan_catalog
"""

import argparse
import asyncio
import json
import sys

from geardesk.core.config import get_settings
from geardesk.core.database import async_session
from geardesk.core.logging_config import setup_logging
from geardesk.services.catalog_issues import scan_catalog_blocking_issues


async def run(note: str) -> int:
    async with async_session() as db:
        summary = await scan_catalog_blocking_issues(db, auto_resolve_note=note)
    print(json.dumps(summary, indent=2, sort_keys=True))
    return 1 if summary["open_blocking_count"] else 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Scan the catalog for blocking issues")
    parser.add_argument(
        "--note", default="Auto-resolved by rescan", help="Resolution note for issues that no longer apply"
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    return asyncio.run(run(args.note))


if __name__ == "__main__":
    sys.exit(main())

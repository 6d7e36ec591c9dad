"""Fill missing lens focal length and aperture from each catalog item's listing text.

Usage:
    python -m geardesk.scripts.backfill_specs --dry-run
    python -m geardesk.scripts.backfill_specs --apply

Run geardesk-scan-catalog afterwards to resolve the issues this fixes.
"""

import argparse
import asyncio
import json
import sys

from geardesk.core.config import get_settings
from geardesk.core.database import async_session
from geardesk.core.logging_config import setup_logging
from geardesk.services.spec_backfill import APPLIED, AMBIGUOUS, NO_MATCH, backfill_specs_from_output_text


async def run(apply: bool) -> int:
    async with async_session() as db:
        report = await backfill_specs_from_output_text(db, apply=apply)

    print(json.dumps({"target_rows": report.target_rows, **report.counts}, indent=2))
    for status in (APPLIED, AMBIGUOUS, NO_MATCH):
        print(f"\n=== TOP {len(report.examples[status])} {status} EXAMPLES ===")
        for example in report.examples[status]:
            print(json.dumps(example))

    if not apply:
        print("\nDRY RUN: nothing was written. Run with --apply to update specifications.")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Backfill lens specs from catalog listing text")
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--dry-run", action="store_true", help="Report what would change")
    mode.add_argument("--apply", action="store_true", help="Write the parsed specifications")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_dir)
    return asyncio.run(run(args.apply))


if __name__ == "__main__":
    sys.exit(main())

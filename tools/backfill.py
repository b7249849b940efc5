#!/usr/bin/env python3
"""Bulk date backfill CLI.

Runs the backfill chunk after chunk until the board is exhausted, without
going through the HTTP endpoint.

Usage:
    python tools/backfill.py                       # Dry run, whole board
    python tools/backfill.py --execute             # Write changes
    python tools/backfill.py --execute --cursor X  # Resume from a cursor
    python tools/backfill.py --max-chunks 3        # Stop after three chunks
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from boardsync.app import build_backfill_runner
from boardsync.config import load_config
from boardsync.errors import BoardsyncError
from boardsync.handlers.backfill import run_until_complete


def main():
    parser = argparse.ArgumentParser(
        description="Bulk date backfill",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--execute",
        "-x",
        action="store_true",
        help="Write changes (default: dry run)",
    )

    parser.add_argument(
        "--cursor",
        help="Resume from a cursor printed by an earlier run",
    )

    parser.add_argument(
        "--max-chunks",
        "-n",
        type=int,
        default=None,
        help="Stop after this many chunks (default: until complete)",
    )

    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to boardsync.yaml",
    )

    parser.add_argument(
        "--json",
        "-j",
        action="store_true",
        help="Print every chunk report as JSON",
    )

    args = parser.parse_args()
    load_dotenv()

    def on_chunk(number, report):
        if args.json:
            print(json.dumps(report.to_dict(), indent=2))
            return
        print(
            f"Chunk {number}: fetched {report.items_fetched}, "
            f"needing update {report.needing_update}, "
            f"written {report.successful}, failed {report.failed}, "
            f"already correct {report.already_correct}, skipped {report.skipped}"
        )
        for failure in report.failures:
            print(f"  FAILED item {failure['itemId']} ({failure['name']}): {failure['error']}")
        for invalid in report.invalid_items:
            print(f"  INVALID item {invalid['itemId']} ({invalid['name']}): {invalid['error']}")

    try:
        runner = build_backfill_runner(load_config(args.config))
        reports = run_until_complete(
            runner,
            execute=args.execute,
            cursor=args.cursor,
            max_chunks=args.max_chunks,
            on_chunk=on_chunk,
        )
    except BoardsyncError as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1

    last = reports[-1] if reports else None
    if last is not None and last.next_cursor:
        print(f"\nStopped with more to do. Resume with: --cursor {last.next_cursor}", file=sys.stderr)
    else:
        print("\nComplete - all items processed.", file=sys.stderr)
    return 1 if any(r.failed for r in reports) else 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Runs one pass of the lending sweeps: lapsed Ready holds expire (and the
next patron in line is promoted) and past-due loans are marked overdue.
Meant for cron when the API's background sweeper is disabled.
"""
import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from lendit.core import utils
from lendit.core.api import LendingAPI


def main():
    parser = argparse.ArgumentParser(
        description="Expire lapsed holds and mark overdue loans"
    )
    parser.add_argument(
        "--now",
        type=str,
        default=None,
        help="Evaluate as of this UTC time (ISO 8601), defaults to the current time"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Log every state change"
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    now = None
    if args.now:
        try:
            now = utils.as_naive_utc(datetime.fromisoformat(args.now))
        except ValueError:
            print(f"Error: Invalid timestamp: {args.now}")
            sys.exit(1)

    result = LendingAPI.sweep(now=now)
    print(f"✓ {result['expired_holds']} ready hold(s) expired, "
          f"{result['overdue_loans']} loan(s) marked overdue")


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""
Script to register an item with a running Lendit server.
"""
import argparse
import sys
from pathlib import Path

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent))

from lendit.core.client import LendingClient


def main():
    parser = argparse.ArgumentParser(
        description="Register an item with Lendit"
    )
    parser.add_argument("--title", type=str, default=None, help="Display title")
    parser.add_argument(
        "--copies",
        type=int,
        default=1,
        help="Number of lendable copies (at least 1)"
    )
    parser.add_argument("--loan-days", type=int, default=None, help="Loan period in days")
    parser.add_argument("--renewals", type=int, default=None, help="Maximum renewals per loan")
    parser.add_argument("--api", type=str, default=LendingClient.API_URL, help="Lendit API base URL")
    args = parser.parse_args()

    if args.copies < 1:
        print(f"Error: --copies must be at least 1, got {args.copies}")
        sys.exit(1)

    try:
        with LendingClient(api_url=args.api) as client:
            item = client.add_item(
                total_copies=args.copies,
                loan_period_days=args.loan_days,
                max_renewals=args.renewals,
                title=args.title,
            )
        print(f"✓ Item {item['id']} registered with {item['total_copies']} copies")
    except httpx.HTTPStatusError as e:
        print(f"✗ Registration failed ({e.response.status_code}): {e.response.text}")
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"✗ Could not reach Lendit: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

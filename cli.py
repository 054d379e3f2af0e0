import argparse
import csv
import sys
from typing import List, Optional

import structlog

from config import get_settings
from csv_io import read_transactions, write_accounts
from logging_setup import configure_logging
from services import get_payment_engine

logger = structlog.get_logger()


def build_parser(version: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="transactions-processor",
        description="Apply a CSV file of transactions and print the resulting client accounts as CSV.",
    )
    parser.add_argument(
        "transactions_file",
        metavar="TRANSACTIONS_FILE",
        help="Path to CSV file containing the transactions to process",
    )
    parser.add_argument(
        "--sort",
        action="store_true",
        default=None,
        help="Order accounts by client id",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {version}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    args = build_parser(settings.app_version).parse_args(argv)
    configure_logging(settings)

    sort = settings.sort_output if args.sort is None else args.sort
    engine = get_payment_engine()

    try:
        with open(args.transactions_file, newline="", encoding="utf-8", errors="replace") as f:
            engine.process_all(read_transactions(f))
    except OSError as e:
        logger.error(
            "Cannot read transactions file",
            path=args.transactions_file,
            error=str(e),
        )
        return 1
    except csv.Error as e:
        logger.error(
            "Cannot parse transactions file",
            path=args.transactions_file,
            error=str(e),
        )
        return 1

    write_accounts(engine.snapshot(sort=sort), sys.stdout, settings.amount_precision)
    return 0


if __name__ == "__main__":
    sys.exit(main())

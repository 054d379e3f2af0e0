"""Reading transaction CSV files and writing the account report."""

import csv
from decimal import Decimal, localcontext
from typing import Iterable, Iterator, TextIO

import structlog
from pydantic import ValidationError

from models import AccountStatus, Transaction, TransactionRecord

logger = structlog.get_logger()

TRANSACTION_FIELDS = ["type", "client", "tx", "amount"]
REPORT_FIELDS = ["client", "available", "held", "total", "locked"]


def read_transactions(stream: TextIO) -> Iterator[Transaction]:
    """Yield transactions from a CSV stream with a type,client,tx,amount header.

    Rows that cannot be decoded are logged and skipped.
    """
    reader = csv.reader(stream, skipinitialspace=True)
    header = next(reader, None)
    if header is None:
        return

    fields = [name.strip() for name in header]
    for row in reader:
        if not any(cell.strip() for cell in row):
            continue

        # dispute rows often omit the trailing amount column
        values = dict(zip(fields, row))
        try:
            record = TransactionRecord(**{k: v for k, v in values.items() if k in TRANSACTION_FIELDS})
            yield record.to_transaction()
        except (ValidationError, ValueError) as e:
            logger.warning(
                "Skipping malformed transaction record",
                line=reader.line_num,
                row=row,
                error=str(e),
            )


def format_amount(amount: Decimal, precision: int) -> str:
    with localcontext() as ctx:
        # room for every integer digit plus the requested fraction
        ctx.prec = max(ctx.prec, amount.adjusted() + precision + 2)
        return str(amount.quantize(Decimal(1).scaleb(-precision)))


def write_accounts(accounts: Iterable[AccountStatus], stream: TextIO, precision: int = 4) -> None:
    """Write the account report as CSV."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(REPORT_FIELDS)
    for account in accounts:
        writer.writerow([
            account.client,
            format_amount(account.available, precision),
            format_amount(account.held, precision),
            format_amount(account.total, precision),
            str(account.locked).lower(),
        ])

"""
csv_io.py - CSV record source and account summary sink

read_records() turns a CSV stream into raw rows; write_snapshot() renders
account snapshots. Neither applies any business rule: validation happens in
events.parse_record() and balances come from the engine.
"""

from __future__ import annotations
import csv
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, TextIO, Tuple

from .core import AccountSnapshot, MalformedRecord

REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")

Row = Dict[str, Optional[str]]


def read_records(stream: TextIO) -> Iterator[Tuple[int, Row]]:
    """
    Yield (line_no, row) for every data line of a CSV stream.

    The first line is the header. Column names and values are trimmed, so
    "deposit, 1, 1, 1.0" reads the same as "deposit,1,1,1.0". Columns missing
    at the end of a row (typically amount on a dispute) read as None. Blank
    lines are skipped.

    Raises:
        MalformedRecord: If the header lacks a required column, a row has more
                         fields than the header, or the CSV itself is unreadable.
    """
    reader = csv.reader(stream)
    try:
        header = next(reader, None)
        if header is None:
            return
        columns = [name.strip() for name in header]
        missing = [name for name in REQUIRED_COLUMNS if name not in columns]
        if missing:
            raise MalformedRecord(f"header is missing column(s): {', '.join(missing)}", reader.line_num)

        for fields in reader:
            if not any(field.strip() for field in fields):
                continue
            if len(fields) > len(columns):
                raise MalformedRecord(
                    f"expected at most {len(columns)} fields, got {len(fields)}", reader.line_num
                )
            values: List[Optional[str]] = [field.strip() for field in fields]
            values.extend([None] * (len(columns) - len(values)))
            yield reader.line_num, dict(zip(columns, values))
    except csv.Error as e:
        raise MalformedRecord(f"unreadable CSV: {e}", reader.line_num) from e


def format_amount(value: Decimal) -> str:
    """Render a rounded amount in fixed-point notation."""
    return format(value, "f")


def write_snapshot(stream: TextIO, accounts: Iterable[AccountSnapshot]) -> None:
    """
    Write one CSV row per account, preceded by the header row.

    Amounts are written as given (callers pass rounded snapshots), locked as
    "true"/"false".
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for account in accounts:
        writer.writerow([
            account.client,
            format_amount(account.available),
            format_amount(account.held),
            format_amount(account.total),
            "true" if account.locked else "false",
        ])

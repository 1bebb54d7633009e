"""moneybags CLI - summarize client accounts from a CSV of transactions.

Usage:
  moneybags transactions.csv > accounts.csv
  moneybags -v transactions.csv            - log every skipped event to stderr
  moneybags --no-withdrawal-disputes ...   - only deposits can be disputed
  moneybags --strict-client-match ...      - abort on a dispute naming the wrong client
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO, Union

from moneybags import __version__
from moneybags.core import AccountSnapshot, EnginePolicy, MoneybagsError
from moneybags.csv_io import read_records, write_snapshot
from moneybags.engine import AccountEngine
from moneybags.events import parse_record

logger = logging.getLogger(__name__)


def process_records(
    stream: TextIO,
    policy: Optional[EnginePolicy] = None,
    verbose: bool = False,
) -> List[AccountSnapshot]:
    """
    Run every record of a CSV stream through a fresh engine.

    Returns:
        The final account snapshot, in first-seen client order.

    Raises:
        MoneybagsError: On the first malformed record or arithmetic failure.
                        Nothing is returned for a partial run.
    """
    engine = AccountEngine(policy=policy, verbose=verbose)
    for line_no, row in read_records(stream):
        engine.apply(parse_record(row, line_no), line_no)
    logger.info(
        "processed %d events (%d applied, %d skipped) for %d clients",
        engine.events_applied + engine.events_rejected,
        engine.events_applied, engine.events_rejected, len(engine),
    )
    return engine.snapshot()


class Moneybags:
    """
    Processes the transactions found in csv_file and writes a CSV summary of
    the final account states.

    run() takes the output stream rather than writing to stdout, which keeps
    the program easy to test.
    """

    def __init__(
        self,
        csv_file: Union[str, Path],
        policy: Optional[EnginePolicy] = None,
        verbose: bool = False,
    ):
        self.csv_file = Path(csv_file)
        self.policy = policy
        self.verbose = verbose

    def run(self, writer: TextIO) -> None:
        try:
            f = open(self.csv_file, newline="")
        except OSError as e:
            raise MoneybagsError(f"Unable to open file '{self.csv_file}': {e.strerror or e}") from e
        with f:
            accounts = process_records(f, policy=self.policy, verbose=self.verbose)
        write_snapshot(writer, accounts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moneybags",
        description="Process the transactions in CSV_FILE and print the final client accounts as CSV.",
    )
    parser.add_argument("csv_file", metavar="CSV_FILE", help="Path to a CSV file of transaction records")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log skipped events and a run summary to stderr")
    parser.add_argument("--no-withdrawal-disputes", action="store_true",
                        help="Skip disputes that refer to a withdrawal")
    parser.add_argument("--strict-client-match", action="store_true",
                        help="Abort when a dispute, resolve or chargeback names another client's transaction")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
    )

    policy = EnginePolicy(
        dispute_withdrawals=not args.no_withdrawal_disputes,
        strict_client_match=args.strict_client_match,
    )
    try:
        Moneybags(args.csv_file, policy=policy, verbose=args.verbose).run(sys.stdout)
    except MoneybagsError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

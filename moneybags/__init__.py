"""
moneybags - Transaction Processing Engine

Turns an ordered stream of deposits, withdrawals, disputes, resolves and
chargebacks into final per-client account balances.

Usage:
    from decimal import Decimal
    from moneybags import AccountEngine, Deposit, Withdrawal, Dispute, Chargeback

    engine = AccountEngine()
    engine.apply(Deposit(client=1, tx=1, amount=Decimal("5.0")))
    engine.apply(Withdrawal(client=1, tx=2, amount=Decimal("2.0")))
    engine.apply(Dispute(client=1, tx=1))       # INSUFFICIENT_FUNDS: 3.0 available
    engine.apply(Chargeback(client=1, tx=1))    # INVALID_STATE: tx 1 not disputed

    for account in engine.snapshot():
        print(account.client, account.available, account.held, account.total, account.locked)

From the command line:
    moneybags transactions.csv > accounts.csv
"""

__version__ = '1.0.0'

# Core types
from .core import (
    EventKind,
    DisputeState,
    ApplyResult,
    EnginePolicy,
    TransactionRecord,
    Account,
    AccountSnapshot,
    MoneybagsError,
    MalformedRecord,
    UnknownEventKind,
    DuplicateTransaction,
    ClientMismatch,
    ArithmeticOverflow,
    checked_add,
    checked_sub,
    round_output,
    MONEY_KINDS,
    MONEY_CONTEXT,
    MAX_ID,
    MAX_BALANCE,
    OUTPUT_DECIMAL_PLACES,
)

# Events
from .events import (
    LedgerEvent,
    MoneyEvent,
    Deposit,
    Withdrawal,
    Dispute,
    Resolve,
    Chargeback,
    EVENT_TYPES,
    parse_record,
)

# Engine
from .engine import AccountEngine

# CSV I/O
from .csv_io import read_records, write_snapshot, format_amount

# Runner
from .cli import Moneybags, process_records

__all__ = [
    # Core
    'EventKind', 'DisputeState', 'ApplyResult', 'EnginePolicy',
    'TransactionRecord', 'Account', 'AccountSnapshot',
    'MoneybagsError', 'MalformedRecord', 'UnknownEventKind', 'DuplicateTransaction',
    'ClientMismatch', 'ArithmeticOverflow',
    'checked_add', 'checked_sub', 'round_output',
    'MONEY_KINDS', 'MONEY_CONTEXT', 'MAX_ID', 'MAX_BALANCE', 'OUTPUT_DECIMAL_PLACES',
    # Events
    'LedgerEvent', 'MoneyEvent', 'Deposit', 'Withdrawal', 'Dispute', 'Resolve', 'Chargeback',
    'EVENT_TYPES', 'parse_record',
    # Engine
    'AccountEngine',
    # CSV I/O
    'read_records', 'write_snapshot', 'format_amount',
    # Runner
    'Moneybags', 'process_records',
]

"""
events.py - Ledger Events and record validation

A ledger event is one validated input instruction. There are five kinds:
deposits and withdrawals move money and carry an amount; disputes, resolves
and chargebacks refer back to an earlier deposit or withdrawal by its tx.

parse_record() is the validation stage: it turns a raw row (column name to
string) into an event or raises MalformedRecord. It has no side effects.
Duplicate transaction IDs can only be detected against run state, so that
check lives in AccountEngine.apply().
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import ClassVar, Dict, Mapping, Optional, Type, Union

from .core import (
    EventKind, MONEY_KINDS, MAX_ID, ZERO,
    MalformedRecord, UnknownEventKind,
)


def _check_id(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be int, got {type(value).__name__}")
    if not 0 <= value <= MAX_ID:
        raise ValueError(f"{name} must be between 0 and {MAX_ID}, got {value}")


# ============================================================================
# EVENT TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class LedgerEvent:
    """
    Base of all ledger events.

    Attributes:
        client: Client the event applies to.
        tx: Transaction ID. New for deposits and withdrawals, a back-reference
            for disputes, resolves and chargebacks.
    """
    client: int
    tx: int

    kind: ClassVar[EventKind]

    def __post_init__(self):
        _check_id("client", self.client)
        _check_id("tx", self.tx)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client}, tx={self.tx})"


@dataclass(frozen=True, slots=True)
class MoneyEvent(LedgerEvent):
    """A ledger event that moves funds. The amount must be finite and positive."""
    amount: Decimal

    def __post_init__(self):
        LedgerEvent.__post_init__(self)
        if not isinstance(self.amount, Decimal):
            raise ValueError(f"amount must be Decimal, got {type(self.amount).__name__}")
        if not self.amount.is_finite():
            raise ValueError(f"amount must be finite, got {self.amount}")
        if self.amount <= ZERO:
            raise ValueError(f"amount must be positive, got {self.amount}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(client={self.client}, tx={self.tx}, amount={self.amount})"


@dataclass(frozen=True, slots=True, repr=False)
class Deposit(MoneyEvent):
    kind: ClassVar[EventKind] = EventKind.DEPOSIT


@dataclass(frozen=True, slots=True, repr=False)
class Withdrawal(MoneyEvent):
    kind: ClassVar[EventKind] = EventKind.WITHDRAWAL


@dataclass(frozen=True, slots=True, repr=False)
class Dispute(LedgerEvent):
    kind: ClassVar[EventKind] = EventKind.DISPUTE


@dataclass(frozen=True, slots=True, repr=False)
class Resolve(LedgerEvent):
    kind: ClassVar[EventKind] = EventKind.RESOLVE


@dataclass(frozen=True, slots=True, repr=False)
class Chargeback(LedgerEvent):
    kind: ClassVar[EventKind] = EventKind.CHARGEBACK


EVENT_TYPES: Dict[EventKind, Type[LedgerEvent]] = {
    EventKind.DEPOSIT: Deposit,
    EventKind.WITHDRAWAL: Withdrawal,
    EventKind.DISPUTE: Dispute,
    EventKind.RESOLVE: Resolve,
    EventKind.CHARGEBACK: Chargeback,
}

AnyEvent = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]


# ============================================================================
# VALIDATION
# ============================================================================

RawRecord = Mapping[str, Optional[str]]


def _text(row: RawRecord, column: str) -> str:
    value = row.get(column)
    return value.strip() if value is not None else ""


def _parse_id(row: RawRecord, column: str, line_no: Optional[int]) -> int:
    text = _text(row, column)
    if not text:
        raise MalformedRecord(f"missing {column}", line_no)
    try:
        return int(text)
    except ValueError:
        raise MalformedRecord(f"{column} is not an integer: {text!r}", line_no) from None


def _parse_amount(row: RawRecord, line_no: Optional[int]) -> Decimal:
    text = _text(row, "amount")
    if not text:
        raise MalformedRecord("missing amount", line_no)
    try:
        return Decimal(text)
    except InvalidOperation:
        raise MalformedRecord(f"amount is not a decimal: {text!r}", line_no) from None


def parse_record(row: RawRecord, line_no: Optional[int] = None) -> AnyEvent:
    """
    Validate a raw record and build the matching ledger event.

    Args:
        row: Mapping with keys "type", "client", "tx" and optionally "amount".
             Values are trimmed; None or "" means the field is absent.
        line_no: Source line number, used only in error messages.

    Returns:
        A Deposit, Withdrawal, Dispute, Resolve or Chargeback.

    Raises:
        UnknownEventKind: If the type is not a known event kind.
        MalformedRecord: If an ID is missing or not a valid integer, or a
                         deposit/withdrawal lacks a positive decimal amount.
    """
    type_text = _text(row, "type")
    try:
        kind = EventKind(type_text)
    except ValueError:
        raise UnknownEventKind(f"unknown event type {type_text!r}", line_no) from None

    client = _parse_id(row, "client", line_no)
    tx = _parse_id(row, "tx", line_no)
    event_type = EVENT_TYPES[kind]
    try:
        if kind in MONEY_KINDS:
            return event_type(client, tx, _parse_amount(row, line_no))
        # Any amount on a dispute, resolve or chargeback is ignored.
        return event_type(client, tx)
    except ValueError as e:
        raise MalformedRecord(str(e), line_no) from None

"""
Core types and pure functions for the moneybags transaction engine.

This module provides the foundational data structures used by the engine:
1. Decimal contexts and checked money arithmetic
2. Enums: EventKind, DisputeState, ApplyResult
3. Exceptions: MoneybagsError and its domain-specific subclasses
4. Immutable data structures: TransactionRecord, Account, AccountSnapshot, EnginePolicy

Account and TransactionRecord are frozen. The engine replaces them wholesale
on every change, so a failed computation never leaves half-applied state.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import (
    Decimal, Context, ROUND_HALF_EVEN,
    Inexact, Overflow, InvalidOperation, localcontext,
)
from enum import Enum
from typing import Dict, FrozenSet, Optional


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Balance arithmetic must never round or wrap silently. All additions and
# subtractions on balances run inside MONEY_CONTEXT, which traps every signal
# that would indicate a lossy result.
#
# Context parameters:
#   - prec=29: enough significant digits to hold MAX_BALANCE exactly
#   - traps: Inexact, Overflow and InvalidOperation raise instead of rounding
#
# Output rounding uses a separate, wider context so that quantizing a large
# balance to OUTPUT_DECIMAL_PLACES cannot itself fail.
#
MONEY_PRECISION = 29

MONEY_CONTEXT = Context(
    prec=MONEY_PRECISION,
    rounding=ROUND_HALF_EVEN,
    traps=[Inexact, Overflow, InvalidOperation],
)

_OUTPUT_CONTEXT = Context(prec=60, rounding=ROUND_HALF_EVEN)


# ============================================================================
# CONSTANTS
# ============================================================================

# Client and transaction identifiers are unsigned 32-bit integers.
MAX_ID = 2**32 - 1

# Largest magnitude any balance may reach (96-bit fixed-point mantissa).
MAX_BALANCE = Decimal(2**96 - 1)

# Fractional digits rendered in account summaries.
OUTPUT_DECIMAL_PLACES = 4
OUTPUT_QUANTUM = Decimal(10) ** -OUTPUT_DECIMAL_PLACES

ZERO = Decimal("0")


# ============================================================================
# ENUMS
# ============================================================================

class EventKind(Enum):
    """
    Kind of ledger event, valued by its spelling in input data.

    DEPOSIT: credit to the client's asset account.
    WITHDRAWAL: debit from the client's asset account.
    DISPUTE: claim that a past transaction was erroneous; its funds are held.
    RESOLVE: dispute withdrawn; held funds return to available.
    CHARGEBACK: dispute settled by reversal; held funds leave and the account freezes.
    """
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


# Kinds that move money and create a TransactionRecord.
MONEY_KINDS: FrozenSet[EventKind] = frozenset({EventKind.DEPOSIT, EventKind.WITHDRAWAL})


class DisputeState(Enum):
    """
    Dispute lifecycle of a TransactionRecord.

    NONE -> DISPUTED -> RESOLVED | CHARGED_BACK. The last two are terminal.
    """
    NONE = "none"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ApplyResult(Enum):
    """
    Outcome of applying one event to the engine.

    APPLIED: the event changed engine state.
    Every other member names why the event was skipped. Skips are never errors.
    """
    APPLIED = "applied"
    ACCOUNT_LOCKED = "account locked"
    INSUFFICIENT_FUNDS = "insufficient funds"
    UNKNOWN_TX = "unknown transaction"
    CLIENT_MISMATCH = "client mismatch"
    NOT_DISPUTABLE = "transaction not disputable"
    INVALID_STATE = "invalid dispute state"

    @property
    def applied(self) -> bool:
        return self is ApplyResult.APPLIED


# ============================================================================
# EXCEPTIONS
# ============================================================================

class MoneybagsError(Exception):
    """Base exception for all errors that abort a run."""
    pass


class MalformedRecord(MoneybagsError):
    """Raised when an input record cannot be turned into a valid ledger event."""

    def __init__(self, message: str, line_no: Optional[int] = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class UnknownEventKind(MalformedRecord):
    """Raised when a record's type is not one of the known event kinds."""
    pass


class DuplicateTransaction(MalformedRecord):
    """Raised when a deposit or withdrawal reuses a transaction ID."""
    pass


class ClientMismatch(MoneybagsError):
    """Raised under strict policy when a dispute-family event names the wrong client."""
    pass


class ArithmeticOverflow(MoneybagsError):
    """Raised when balance arithmetic cannot be carried out exactly."""
    pass


# ============================================================================
# CHECKED ARITHMETIC
# ============================================================================

def _checked(op: str, a: Decimal, b: Decimal) -> Decimal:
    try:
        with localcontext(MONEY_CONTEXT):
            result = a + b if op == "+" else a - b
    except (Inexact, Overflow, InvalidOperation) as e:
        raise ArithmeticOverflow(f"{a} {op} {b} cannot be represented exactly") from e
    if abs(result) > MAX_BALANCE:
        raise ArithmeticOverflow(f"{a} {op} {b} exceeds the maximum balance {MAX_BALANCE}")
    return result


def checked_add(a: Decimal, b: Decimal) -> Decimal:
    """
    Add two amounts exactly.

    Raises:
        ArithmeticOverflow: If the sum needs more than MONEY_PRECISION digits
                            or its magnitude exceeds MAX_BALANCE.
    """
    return _checked("+", a, b)


def checked_sub(a: Decimal, b: Decimal) -> Decimal:
    """
    Subtract b from a exactly. Balances never go negative, so a negative
    result is reported the same way as an overflow.

    Raises:
        ArithmeticOverflow: On precision loss, overflow, or a negative result.
    """
    result = _checked("-", a, b)
    if result < ZERO:
        raise ArithmeticOverflow(f"{a} - {b} would be negative")
    return result


def round_output(value: Decimal) -> Decimal:
    """Round a balance to OUTPUT_DECIMAL_PLACES using banker's rounding."""
    return value.quantize(OUTPUT_QUANTUM, rounding=ROUND_HALF_EVEN, context=_OUTPUT_CONTEXT)


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class EnginePolicy:
    """
    Policy switches for behaviour the ledger rules leave open.

    Attributes:
        dispute_withdrawals: Withdrawals can be disputed like deposits.
                             When False, disputes on withdrawals are skipped.
        strict_client_match: A dispute, resolve or chargeback naming a client
                             other than the transaction's owner raises
                             ClientMismatch instead of being skipped.
    """
    dispute_withdrawals: bool = True
    strict_client_match: bool = False


@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """
    Retained memory of an applied deposit or withdrawal.

    Records are kept for the whole run because a dispute may reference any
    past transaction. Only dispute_state ever changes.
    """
    client: int
    tx: int
    amount: Decimal
    kind: EventKind
    dispute_state: DisputeState = DisputeState.NONE

    def with_state(self, state: DisputeState) -> TransactionRecord:
        return replace(self, dispute_state=state)


@dataclass(frozen=True, slots=True)
class AccountSnapshot:
    """
    Reportable view of an account, rounded to OUTPUT_DECIMAL_PLACES.

    total is stored here (unlike Account). It is the sum of the rounded
    available and held, so the reported figures always add up.
    """
    client: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool

    def as_dict(self) -> Dict[str, object]:
        return {
            "client": self.client,
            "available": self.available,
            "held": self.held,
            "total": self.total,
            "locked": self.locked,
        }


@dataclass(frozen=True, slots=True)
class Account:
    """
    Balance state of one client.

    Attributes:
        client: Client identifier.
        available: Funds the client can withdraw. Never negative.
        held: Funds frozen by open disputes. Never negative.
        locked: Set by a chargeback and never cleared.

    Every mutator returns a new Account; the receiver is left untouched.
    """
    client: int
    available: Decimal = ZERO
    held: Decimal = ZERO
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return checked_add(self.available, self.held)

    def credit(self, amount: Decimal) -> Account:
        """
        Deposit: available += amount.

        The new total is checked too, since held funds count towards it.
        """
        available = checked_add(self.available, amount)
        checked_add(available, self.held)
        return replace(self, available=available)

    def debit(self, amount: Decimal) -> Account:
        """Withdrawal: available -= amount."""
        return replace(self, available=checked_sub(self.available, amount))

    def hold(self, amount: Decimal) -> Account:
        """Dispute: move amount from available to held."""
        return replace(
            self,
            available=checked_sub(self.available, amount),
            held=checked_add(self.held, amount),
        )

    def release(self, amount: Decimal) -> Account:
        """Resolve: move amount from held back to available."""
        return replace(
            self,
            available=checked_add(self.available, amount),
            held=checked_sub(self.held, amount),
        )

    def charge_back(self, amount: Decimal) -> Account:
        """Chargeback: drop amount from held and lock the account."""
        return replace(self, held=checked_sub(self.held, amount), locked=True)

    def snapshot(self) -> AccountSnapshot:
        available = round_output(self.available)
        held = round_output(self.held)
        return AccountSnapshot(
            client=self.client,
            available=available,
            held=held,
            total=_OUTPUT_CONTEXT.add(available, held),
            locked=self.locked,
        )

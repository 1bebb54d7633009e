"""
engine.py - Per-client account state machine

The AccountEngine is the only component that mutates balances. It consumes
ledger events one at a time, strictly in input order, and keeps:
    - accounts: client -> Account, in first-seen order
    - records: tx -> TransactionRecord for every applied deposit/withdrawal

Records are never pruned, since a dispute may name any earlier transaction.

Rejections (insufficient funds, unknown tx, locked account, ...) are not
errors: apply() returns the reason and processing continues. Only structural
problems (duplicate tx, arithmetic overflow, strict-policy client mismatch)
raise, and they abort the run.
"""

from __future__ import annotations
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .core import (
    # Types
    Account, AccountSnapshot, TransactionRecord, EnginePolicy,
    EventKind, DisputeState, ApplyResult,
    # Constants
    MONEY_KINDS, ZERO,
    # Exceptions
    DuplicateTransaction, ClientMismatch,
    # Helpers
    checked_add,
)
from .events import LedgerEvent, Deposit, Withdrawal, Dispute, Resolve, Chargeback

logger = logging.getLogger(__name__)


class AccountEngine:
    """
    Applies ledger events to per-client accounts.

    Thread Safety:
        Not thread-safe. Each run owns one engine; dispute validity depends on
        event order, so all events must go through a single apply() call chain.

    Example:
        engine = AccountEngine()
        engine.apply(Deposit(client=1, tx=1, amount=Decimal("5.0")))
        engine.apply(Dispute(client=1, tx=1))
        engine.snapshot()
        # [AccountSnapshot(client=1, available=0.0000, held=5.0000, ...)]
    """

    def __init__(self, policy: Optional[EnginePolicy] = None, verbose: bool = False):
        """
        Create an engine with no accounts.

        Args:
            policy: Rules for the cases the ledger leaves open (default: EnginePolicy())
            verbose: Log every rejected event at DEBUG level (default: False)
        """
        self.policy = policy or EnginePolicy()
        self.verbose = verbose
        self.accounts: Dict[int, Account] = {}
        self.records: Dict[int, TransactionRecord] = {}
        # Every deposit/withdrawal tx ever submitted, applied or not
        self.seen_tx_ids: Set[int] = set()
        self.events_applied: int = 0
        self.events_rejected: int = 0
        self._handlers: Dict[EventKind, Callable[[Any], ApplyResult]] = {
            EventKind.DEPOSIT: self._apply_deposit,
            EventKind.WITHDRAWAL: self._apply_withdrawal,
            EventKind.DISPUTE: self._apply_dispute,
            EventKind.RESOLVE: self._apply_resolve,
            EventKind.CHARGEBACK: self._apply_chargeback,
        }

    def __len__(self) -> int:
        return len(self.accounts)

    # ========================================================================
    # READ-ONLY QUERIES
    # ========================================================================

    def get_account(self, client: int) -> Optional[Account]:
        """Return the client's account, or None if it was never created."""
        return self.accounts.get(client)

    def get_record(self, tx: int) -> Optional[TransactionRecord]:
        """Return the retained record for a deposit/withdrawal tx, or None."""
        return self.records.get(tx)

    def list_clients(self) -> List[int]:
        """Client IDs in the order their accounts were created."""
        return list(self.accounts)

    def snapshot(self) -> List[AccountSnapshot]:
        """
        Report every account, rounded for output, in first-seen client order.

        Does not mutate state and can be called any number of times.
        """
        return [account.snapshot() for account in self.accounts.values()]

    def verify_invariants(self) -> Dict[str, Any]:
        """
        Check balance invariants across all accounts.

        For every account:
            - available >= 0 and held >= 0
            - held equals the sum of its records currently DISPUTED

        Returns:
            Dict with keys:
            - 'valid': bool - True if no violation was found
            - 'violations': List[Dict] - one entry per violation, with
              client, check, expected and actual

        Example:
            result = engine.verify_invariants()
            assert result['valid'], result['violations']
        """
        disputed: Dict[int, Decimal] = {}
        for record in self.records.values():
            if record.dispute_state is DisputeState.DISPUTED:
                disputed[record.client] = checked_add(disputed.get(record.client, ZERO), record.amount)

        violations = []
        for client, account in self.accounts.items():
            if account.available < ZERO:
                violations.append({
                    'client': client, 'check': 'available >= 0',
                    'expected': ZERO, 'actual': account.available,
                })
            if account.held < ZERO:
                violations.append({
                    'client': client, 'check': 'held >= 0',
                    'expected': ZERO, 'actual': account.held,
                })
            expected_held = disputed.get(client, ZERO)
            if account.held != expected_held:
                violations.append({
                    'client': client, 'check': 'held == sum(disputed)',
                    'expected': expected_held, 'actual': account.held,
                })

        return {
            'valid': len(violations) == 0,
            'violations': violations,
        }

    # ========================================================================
    # EVENT APPLICATION (Mutating)
    # ========================================================================

    def apply(self, event: LedgerEvent, line_no: Optional[int] = None) -> ApplyResult:
        """
        Apply one event to engine state.

        The client's account is created, empty, the first time any event
        names it, whether or not the event is then applied.

        Args:
            event: A Deposit, Withdrawal, Dispute, Resolve or Chargeback
            line_no: Source line of the event, reported in DuplicateTransaction

        Returns:
            ApplyResult.APPLIED if state changed, otherwise the rejection reason.

        Raises:
            DuplicateTransaction: If a deposit/withdrawal reuses a tx
            ClientMismatch: Under strict_client_match, if a dispute-family
                            event names a client other than the record's
            ArithmeticOverflow: If a balance cannot be updated exactly
        """
        if event.kind in MONEY_KINDS:
            if event.tx in self.seen_tx_ids:
                raise DuplicateTransaction(f"transaction {event.tx} already exists", line_no)
            self.seen_tx_ids.add(event.tx)

        if event.client not in self.accounts:
            self.accounts[event.client] = Account(event.client)

        result = self._handlers[event.kind](event)

        if result.applied:
            self.events_applied += 1
        else:
            self.events_rejected += 1
            if self.verbose:
                logger.debug("REJECTED %r: %s", event, result.value)
        return result

    def _apply_deposit(self, event: Deposit) -> ApplyResult:
        account = self.accounts[event.client]
        if account.locked:
            return ApplyResult.ACCOUNT_LOCKED

        self.accounts[event.client] = account.credit(event.amount)
        self.records[event.tx] = TransactionRecord(
            event.client, event.tx, event.amount, EventKind.DEPOSIT,
        )
        return ApplyResult.APPLIED

    def _apply_withdrawal(self, event: Withdrawal) -> ApplyResult:
        account = self.accounts[event.client]
        if account.locked:
            return ApplyResult.ACCOUNT_LOCKED
        if account.available < event.amount:
            return ApplyResult.INSUFFICIENT_FUNDS

        self.accounts[event.client] = account.debit(event.amount)
        self.records[event.tx] = TransactionRecord(
            event.client, event.tx, event.amount, EventKind.WITHDRAWAL,
        )
        return ApplyResult.APPLIED

    def _find_target(self, event: LedgerEvent) -> Tuple[Optional[TransactionRecord], ApplyResult]:
        """
        Look up the record a dispute, resolve or chargeback refers to.

        Returns (record, APPLIED) when the event may proceed, else (None, reason).
        """
        record = self.records.get(event.tx)
        if record is None:
            return None, ApplyResult.UNKNOWN_TX
        if record.client != event.client:
            if self.policy.strict_client_match:
                raise ClientMismatch(
                    f"{event!r} refers to transaction {record.tx} of client {record.client}"
                )
            return None, ApplyResult.CLIENT_MISMATCH
        if self.accounts[record.client].locked:
            return None, ApplyResult.ACCOUNT_LOCKED
        return record, ApplyResult.APPLIED

    def _apply_dispute(self, event: Dispute) -> ApplyResult:
        record, result = self._find_target(event)
        if record is None:
            return result
        if record.kind is EventKind.WITHDRAWAL and not self.policy.dispute_withdrawals:
            return ApplyResult.NOT_DISPUTABLE
        if record.dispute_state is not DisputeState.NONE:
            return ApplyResult.INVALID_STATE

        account = self.accounts[record.client]
        # Funds already spent cannot be held.
        if account.available < record.amount:
            return ApplyResult.INSUFFICIENT_FUNDS

        self.accounts[record.client] = account.hold(record.amount)
        self.records[record.tx] = record.with_state(DisputeState.DISPUTED)
        return ApplyResult.APPLIED

    def _apply_resolve(self, event: Resolve) -> ApplyResult:
        record, result = self._find_target(event)
        if record is None:
            return result
        if record.dispute_state is not DisputeState.DISPUTED:
            return ApplyResult.INVALID_STATE

        account = self.accounts[record.client]
        self.accounts[record.client] = account.release(record.amount)
        self.records[record.tx] = record.with_state(DisputeState.RESOLVED)
        return ApplyResult.APPLIED

    def _apply_chargeback(self, event: Chargeback) -> ApplyResult:
        record, result = self._find_target(event)
        if record is None:
            return result
        if record.dispute_state is not DisputeState.DISPUTED:
            return ApplyResult.INVALID_STATE

        account = self.accounts[record.client]
        self.accounts[record.client] = account.charge_back(record.amount)
        self.records[record.tx] = record.with_state(DisputeState.CHARGED_BACK)
        return ApplyResult.APPLIED

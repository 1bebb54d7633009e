"""
Determinism Conformance Tests

INVARIANT: The final ledger is a pure function of the ordered event stream.

    ∀ stream S: run(S) = run(S)

Snapshots are read-only, so any number of snapshot() calls agree.
"""

import pytest
from hypothesis import given, settings

from moneybags import AccountEngine, EnginePolicy

from .strategies import event_streams


def run(events, policy=None):
    engine = AccountEngine(policy=policy)
    results = [engine.apply(event) for event in events]
    return engine, results


class TestDeterminism:
    """Property-based tests for deterministic replay."""

    @given(event_streams())
    @settings(max_examples=100)
    def test_same_stream_same_ledger(self, events):
        """
        PROPERTY: Two engines fed the same stream end in identical state.
        """
        first, first_results = run(events)
        second, second_results = run(events)

        assert first_results == second_results
        assert first.snapshot() == second.snapshot()
        assert first.records == second.records
        assert first.list_clients() == second.list_clients()

    @given(event_streams())
    @settings(max_examples=100)
    def test_snapshot_is_repeatable(self, events):
        """
        PROPERTY: snapshot() does not mutate state.
        """
        engine, _ = run(events)
        accounts = dict(engine.accounts)

        assert engine.snapshot() == engine.snapshot()
        assert engine.accounts == accounts

    @given(event_streams())
    @settings(max_examples=50)
    def test_policy_is_deterministic(self, events):
        """
        PROPERTY: Determinism holds under every policy combination.
        """
        for policy in [
            EnginePolicy(),
            EnginePolicy(dispute_withdrawals=False),
        ]:
            first, _ = run(events, policy)
            second, _ = run(events, policy)
            assert first.snapshot() == second.snapshot()

    @given(event_streams())
    @settings(max_examples=50)
    def test_client_order_is_first_seen(self, events):
        """
        PROPERTY: Accounts are reported in the order they were created.
        """
        engine, _ = run(events)
        reported = [account.client for account in engine.snapshot()]
        assert reported == engine.list_clients()
        assert len(set(reported)) == len(reported)

"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the transaction engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. invariants.py - Balance invariants (non-negative, total, held accounting)
2. locking.py - A locked account stays locked
3. idempotency.py - Replayed dispute-family events change nothing
4. determinism.py - Reproducible behavior for a given stream

These tests use hypothesis for property-based testing. Shared stream
strategies live in strategies.py.
"""

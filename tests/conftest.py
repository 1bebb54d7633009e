"""
conftest.py - Shared pytest fixtures for moneybags tests

Provides common fixtures used across unit, functional and conformance tests:
- Engines (empty, funded, strict policy)
- CSV file helpers
- Paths to sample data
"""

import pytest
from decimal import Decimal
from pathlib import Path

from moneybags import (
    AccountEngine, EnginePolicy,
    Deposit,
)


DATA_DIR = Path(__file__).parent / "data"


# =============================================================================
# ENGINE FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    """An engine with no accounts and the default policy."""
    return AccountEngine()


@pytest.fixture
def funded_engine():
    """
    An engine with two funded clients:
        client 1: tx 1 deposit 100.0
        client 2: tx 2 deposit 50.0
    """
    engine = AccountEngine()
    engine.apply(Deposit(1, 1, Decimal("100.0")))
    engine.apply(Deposit(2, 2, Decimal("50.0")))
    return engine


@pytest.fixture
def strict_engine():
    """An engine that only allows deposit disputes and aborts on client mismatch."""
    return AccountEngine(EnginePolicy(dispute_withdrawals=False, strict_client_match=True))


# =============================================================================
# CSV FIXTURES
# =============================================================================

@pytest.fixture
def data_dir():
    return DATA_DIR


@pytest.fixture
def write_csv(tmp_path):
    """Factory fixture: write lines to a CSV file under tmp_path and return its path."""
    def _write(lines, name="transactions.csv"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return path
    return _write

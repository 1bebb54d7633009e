"""
test_parse_record.py - Unit tests for record validation (events.parse_record)

Tests:
- Each event kind parses into the matching event type
- Whitespace tolerance
- Amount handling for money and dispute-family events
- Malformed records: unknown type, bad IDs, bad or missing amounts
"""

import pytest
from decimal import Decimal

from moneybags import (
    parse_record,
    Deposit, Withdrawal, Dispute, Resolve, Chargeback,
    MalformedRecord, UnknownEventKind, MoneybagsError,
)


def row(type_, client, tx, amount=None):
    return {"type": type_, "client": client, "tx": tx, "amount": amount}


class TestParseValidRecords:
    """Tests for well-formed records."""

    def test_deposit(self):
        assert parse_record(row("deposit", "1", "2", "3.1415")) == Deposit(1, 2, Decimal("3.1415"))

    def test_withdrawal(self):
        assert parse_record(row("withdrawal", "1", "2", "0.5")) == Withdrawal(1, 2, Decimal("0.5"))

    @pytest.mark.parametrize("type_,event_type", [
        ("dispute", Dispute),
        ("resolve", Resolve),
        ("chargeback", Chargeback),
    ])
    def test_dispute_family(self, type_, event_type):
        assert parse_record(row(type_, "4", "9")) == event_type(4, 9)

    def test_dispute_family_ignores_amount(self):
        event = parse_record(row("dispute", "1", "1", "12.0"))
        assert event == Dispute(1, 1)
        assert not hasattr(event, "amount")

    def test_dispute_family_ignores_garbage_amount(self):
        assert parse_record(row("resolve", "1", "1", "not-a-number")) == Resolve(1, 1)

    def test_whitespace_is_trimmed(self):
        event = parse_record(row(" deposit ", " 1", "2 ", "  1.0  "))
        assert event == Deposit(1, 2, Decimal("1.0"))

    def test_amount_keeps_precision(self):
        event = parse_record(row("deposit", "1", "1", "0.12345678"))
        assert event.amount == Decimal("0.12345678")

    def test_missing_amount_key(self):
        assert parse_record({"type": "chargeback", "client": "1", "tx": "1"}) == Chargeback(1, 1)


class TestParseMalformedRecords:
    """Tests for records that abort the run."""

    def test_unknown_type(self):
        with pytest.raises(UnknownEventKind, match="unknown event type 'transfer'"):
            parse_record(row("transfer", "1", "1", "1.0"))

    def test_type_is_case_sensitive(self):
        with pytest.raises(UnknownEventKind):
            parse_record(row("Deposit", "1", "1", "1.0"))

    def test_unknown_type_is_malformed(self):
        assert issubclass(UnknownEventKind, MalformedRecord)
        assert issubclass(MalformedRecord, MoneybagsError)

    def test_missing_client(self):
        with pytest.raises(MalformedRecord, match="missing client"):
            parse_record(row("deposit", "", "1", "1.0"))

    def test_non_integer_tx(self):
        with pytest.raises(MalformedRecord, match="tx is not an integer"):
            parse_record(row("deposit", "1", "1.5", "1.0"))

    def test_negative_client(self):
        with pytest.raises(MalformedRecord, match="client must be between"):
            parse_record(row("dispute", "-3", "1"))

    def test_client_too_large(self):
        with pytest.raises(MalformedRecord, match="client must be between"):
            parse_record(row("dispute", str(2**32), "1"))

    @pytest.mark.parametrize("type_", ["deposit", "withdrawal"])
    def test_missing_amount(self, type_):
        with pytest.raises(MalformedRecord, match="missing amount"):
            parse_record(row(type_, "1", "1"))

    def test_blank_amount(self):
        with pytest.raises(MalformedRecord, match="missing amount"):
            parse_record(row("deposit", "1", "1", "   "))

    def test_non_numeric_amount(self):
        with pytest.raises(MalformedRecord, match="amount is not a decimal"):
            parse_record(row("deposit", "1", "1", "ten"))

    def test_zero_amount(self):
        with pytest.raises(MalformedRecord, match="positive"):
            parse_record(row("deposit", "1", "1", "0.0000"))

    def test_negative_amount(self):
        with pytest.raises(MalformedRecord, match="positive"):
            parse_record(row("withdrawal", "1", "1", "-2"))

    def test_nan_amount(self):
        with pytest.raises(MalformedRecord, match="finite"):
            parse_record(row("deposit", "1", "1", "NaN"))

    def test_line_number_in_message(self):
        with pytest.raises(MalformedRecord, match="^line 7: missing amount$") as excinfo:
            parse_record(row("deposit", "1", "1"), line_no=7)
        assert excinfo.value.line_no == 7

    def test_no_line_number(self):
        with pytest.raises(MalformedRecord) as excinfo:
            parse_record(row("deposit", "1", "1"))
        assert excinfo.value.line_no is None
        assert str(excinfo.value) == "missing amount"

"""Unit tests for receipt formatting and the role policy"""

import pytest
from datetime import datetime, timezone
from remit_ledger.domain.receipts import format_receipt_number
from remit_ledger.domain.permissions import (
    is_allowed,
    CLIENTS_ADJUST_BALANCE,
    GUARANTORS_WRITE,
    REPORTS_READ,
    TRANSACTIONS_WRITE,
)


def test_receipt_number_format():
    issued = datetime(2025, 5, 3, tzinfo=timezone.utc)
    assert format_receipt_number("RCPT", issued, 17) == "RCPT202505-000017"


def test_receipt_number_keeps_digits_past_padding():
    issued = datetime(2026, 12, 31, tzinfo=timezone.utc)
    assert format_receipt_number("TX", issued, 1234567) == "TX202612-1234567"


@pytest.mark.parametrize("role", ["admin", "manager", "cashier"])
def test_every_role_can_create_transactions(role):
    assert is_allowed(role, TRANSACTIONS_WRITE)


def test_reports_are_for_admin_and_manager():
    assert is_allowed("admin", REPORTS_READ)
    assert is_allowed("manager", REPORTS_READ)
    assert not is_allowed("cashier", REPORTS_READ)


def test_guarantor_creation_excludes_manager():
    assert is_allowed("cashier", GUARANTORS_WRITE)
    assert not is_allowed("manager", GUARANTORS_WRITE)


def test_balance_override_excludes_cashier():
    assert not is_allowed("cashier", CLIENTS_ADJUST_BALANCE)


def test_unknown_role_gets_nothing():
    assert not is_allowed("auditor", TRANSACTIONS_WRITE)

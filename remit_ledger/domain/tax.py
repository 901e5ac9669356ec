"""Tax and balance arithmetic - core business logic for transfers and withdrawals"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from remit_ledger.domain.models import (
    DEBIT,
    TRANSACTION_TYPES,
    TransactionQuote,
    WithdrawQuote,
    TaxLogDraft,
)
from remit_ledger.domain.exceptions import ValidationError, InvalidSettingError

DEFAULT_PROFIT_SOURCE = "Transfer Fee"


def parse_tax_rate(value: Any) -> Decimal:
    """
    Interpret a stored taxRate setting as a fraction.

    Missing settings mean no tax. Strings and numbers are accepted
    ("0.05", 0.05); the rate must fall in [0, 1).

    Raises:
        InvalidSettingError: Value is not numeric or out of range
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, bool):
        raise InvalidSettingError(f"Tax rate must be a number, got {value!r}")

    try:
        rate = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise InvalidSettingError(f"Tax rate must be a number, got {value!r}") from e

    if not rate.is_finite() or rate < 0 or rate >= 1:
        raise InvalidSettingError(f"Tax rate must be between 0 and 1, got {value!r}")

    return rate


def compute_tax(amount_cents: int, tax_rate: Decimal) -> int:
    """Tax on an amount, rounded half-up to the nearest cent"""
    return int((Decimal(amount_cents) * tax_rate).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def quote_transaction(type: str, amount_cents: int, tax_rate: Decimal) -> TransactionQuote:
    """
    Work out tax and balance deltas for a transfer.

    Debit: the sender pays amount + tax, the receiver gets the bare amount.
    Credit: the receiver gets amount - tax.

    Example (rate 0.05, amount $100.00):
        debit  -> sender -10500, receiver +10000, tax 500
        credit -> receiver +9500, tax 500
    """
    if type not in TRANSACTION_TYPES:
        raise ValidationError("Unknown transaction type")
    if amount_cents is None or amount_cents <= 0:
        raise ValidationError("Invalid input")

    tax_amount = compute_tax(amount_cents, tax_rate)
    total_amount = amount_cents + tax_amount

    if type == DEBIT:
        sender_delta = -total_amount
        receiver_delta = amount_cents
    else:
        sender_delta = 0
        receiver_delta = amount_cents - tax_amount

    return TransactionQuote(
        type=type,
        amount_cents=amount_cents,
        tax_rate=tax_rate,
        tax_amount_cents=tax_amount,
        total_amount_cents=total_amount,
        sender_delta_cents=sender_delta,
        receiver_delta_cents=receiver_delta,
    )


def quote_withdraw(amount_cents: int, tax_rate: Decimal) -> WithdrawQuote:
    """
    Split a withdrawal into retained tax and cash handed out.

    The full amount is deducted from the balance; the client receives
    amount - tax. Rate 0.10 on $200.00 -> client receives $180.00.
    """
    if amount_cents is None or amount_cents <= 0:
        raise ValidationError("Invalid input: client_id and positive amount required")

    tax_amount = compute_tax(amount_cents, tax_rate)
    return WithdrawQuote(
        amount_cents=amount_cents,
        tax_rate=tax_rate,
        tax_amount_cents=tax_amount,
        total_received_cents=amount_cents - tax_amount,
    )


def derive_tax_log(
    type: str,
    amount_cents: int,
    tax_amount_cents: int,
    total_amount_cents: int,
    receipt_number: Optional[str],
) -> TaxLogDraft:
    """Tax log fields for a stored transaction"""
    return TaxLogDraft(
        amount_sent_cents=amount_cents,
        amount_received_cents=total_amount_cents - tax_amount_cents,
        profit_cents=tax_amount_cents or 0,
        method="Send" if type == DEBIT else "Receive",
        profit_source=DEFAULT_PROFIT_SOURCE,
        description=f"Tax recorded for transaction {receipt_number or 'N/A'}",
    )


def format_money(cents: int) -> str:
    """$1234.50 style rendering for user-facing messages"""
    return f"${Decimal(cents) / 100:.2f}"

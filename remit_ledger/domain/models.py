"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

CREDIT = "credit"
DEBIT = "debit"
TRANSACTION_TYPES = (CREDIT, DEBIT)

TRANSACTION_STATUSES = ("pending", "completed", "refunded")

# Request amount bounds, well inside BIGINT
MAX_AMOUNT_CENTS = 10**12
MAX_BALANCE_CENTS = 10**15
SETTING_KEY_MAX_LENGTH = 64


@dataclass
class TransactionQuote:
    """Tax and balance deltas for a credit/debit transaction"""

    type: str
    amount_cents: int
    tax_rate: Decimal
    tax_amount_cents: int
    total_amount_cents: int
    sender_delta_cents: int  # 0 for credit
    receiver_delta_cents: int


@dataclass
class WithdrawQuote:
    """Tax split for a withdrawal; the full amount leaves the balance"""

    amount_cents: int
    tax_rate: Decimal
    tax_amount_cents: int
    total_received_cents: int


@dataclass
class TaxLogDraft:
    """Fields of the tax log derived from a stored transaction"""

    amount_sent_cents: int
    amount_received_cents: int
    profit_cents: int
    method: str  # "Send" | "Receive"
    profit_source: str
    description: str


@dataclass
class SideEffectOutcome:
    """Result of a best-effort write that must not fail the parent request"""

    recorded: bool
    error: Optional[str] = None


TAX_RATE_KEY = "taxRate"

# Values materialised by GET /settings/{key} when the key has never been set
SETTING_DEFAULTS = {
    TAX_RATE_KEY: 0,
    "withdraw_tax": 0,
    "system_name": "Money Transfer System",
}

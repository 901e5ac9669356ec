"""Receipt number formatting"""

from datetime import datetime

from remit_ledger.utils.date_utils import month_stamp

RECEIPT_PREFIX_KEY = "receiptPrefix"
RECEIPT_COUNTER_NAME = "receiptCounter"


def format_receipt_number(prefix: str, issued_at: datetime, sequence: int) -> str:
    """
    Build a human-readable receipt number.

    Format: {prefix}{YYYYMM}-{sequence zero-padded to 6 digits}
    Example: RCPT, May 2025, 17 -> RCPT202505-000017
    """
    return f"{prefix}{month_stamp(issued_at)}-{sequence:06d}"

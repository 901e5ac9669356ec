"""Prometheus metrics for monitoring transfer volume, tax revenue and tax-log health"""

from prometheus_client import Counter, Histogram

# Ledger metrics
transaction_counter = Counter(
    "ledger_transactions_total",
    "Transaction creation attempts",
    ["type", "outcome"],  # credit | debit ; created | rejected | failed
)

withdraw_counter = Counter(
    "ledger_withdrawals_total",
    "Withdraw creation attempts",
    ["outcome"],  # created | rejected | failed
)

tax_collected_counter = Counter(
    "ledger_tax_collected_cents_total",
    "Tax retained by the system, in cents",
    ["source"],  # transaction | withdraw
)

tax_log_failure_counter = Counter(
    "ledger_tax_log_failures_total",
    "Tax log writes that failed and were skipped",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transaction(type: str, outcome: str, tax_amount_cents: int = 0) -> None:
    """Count a transaction attempt and, when created, the tax it brought in"""
    transaction_counter.labels(type=type, outcome=outcome).inc()
    if outcome == "created" and tax_amount_cents > 0:
        tax_collected_counter.labels(source="transaction").inc(tax_amount_cents)


def record_withdraw(outcome: str, tax_amount_cents: int = 0) -> None:
    withdraw_counter.labels(outcome=outcome).inc()
    if outcome == "created" and tax_amount_cents > 0:
        tax_collected_counter.labels(source="withdraw").inc(tax_amount_cents)

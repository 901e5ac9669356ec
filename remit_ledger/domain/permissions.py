"""Role-based access policy, independent of the web framework"""

from typing import Dict, FrozenSet

CLIENTS_READ = "clients:read"
CLIENTS_WRITE = "clients:write"
CLIENTS_ADJUST_BALANCE = "clients:adjust_balance"
GUARANTORS_READ = "guarantors:read"
GUARANTORS_WRITE = "guarantors:write"
TRANSACTIONS_READ = "transactions:read"
TRANSACTIONS_WRITE = "transactions:write"
WITHDRAWALS_READ = "withdrawals:read"
WITHDRAWALS_WRITE = "withdrawals:write"
SETTINGS_READ = "settings:read"
SETTINGS_WRITE = "settings:write"
TAXLOGS_READ = "taxlogs:read"
REPORTS_READ = "reports:read"
DASHBOARD_READ = "dashboard:read"

_COUNTER_ACTIONS = frozenset(
    {
        CLIENTS_READ,
        CLIENTS_WRITE,
        GUARANTORS_READ,
        TRANSACTIONS_READ,
        TRANSACTIONS_WRITE,
        WITHDRAWALS_READ,
        WITHDRAWALS_WRITE,
        SETTINGS_READ,
        SETTINGS_WRITE,
        TAXLOGS_READ,
        DASHBOARD_READ,
    }
)

ROLE_PERMISSIONS: Dict[str, FrozenSet[str]] = {
    "admin": _COUNTER_ACTIONS | {CLIENTS_ADJUST_BALANCE, GUARANTORS_WRITE, REPORTS_READ},
    "manager": _COUNTER_ACTIONS | {CLIENTS_ADJUST_BALANCE, REPORTS_READ},
    "cashier": _COUNTER_ACTIONS | {GUARANTORS_WRITE},
}


def is_allowed(role: str, action: str) -> bool:
    """True when the role may perform the action; unknown roles get nothing"""
    return action in ROLE_PERMISSIONS.get(role, frozenset())

"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import date, datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from remit_ledger.domain.models import MAX_AMOUNT_CENTS, MAX_BALANCE_CENTS

Role = Literal["admin", "cashier", "manager"]


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    message: str


# Auth


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register"""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=6, max_length=72)
    role: Role = "cashier"


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    """Request body for PUT /auth/profile; role is not self-service"""

    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    password: Optional[str] = Field(None, min_length=6, max_length=72)


class UserResponse(ORMModel):
    id: uuid.UUID
    name: str
    email: str
    role: str
    created_at: datetime


class LoginResponse(BaseModel):
    token: str
    user: UserResponse


# Guarantors


class GuarantorCreate(BaseModel):
    full_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None


class GuarantorResponse(ORMModel):
    id: uuid.UUID
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    created_at: datetime


# Clients


class ClientCreate(BaseModel):
    """Request body for POST /clients; balance_cents seeds an opening ledger entry"""

    full_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    education_level: Optional[str] = None
    guarantor_id: Optional[uuid.UUID] = None
    balance_cents: int = Field(0, ge=-MAX_BALANCE_CENTS, le=MAX_BALANCE_CENTS)


class ClientUpdate(BaseModel):
    """Profile fields only; balances change through the ledger"""

    full_name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    education_level: Optional[str] = None
    guarantor_id: Optional[uuid.UUID] = None

    @field_validator("full_name")
    @classmethod
    def full_name_not_null(cls, value: Optional[str]) -> str:
        # Omit the field to keep the name; null cannot clear it
        if value is None:
            raise ValueError("full_name cannot be null")
        return value


class ClientBalanceUpdate(BaseModel):
    balance_cents: int = Field(..., ge=-MAX_BALANCE_CENTS, le=MAX_BALANCE_CENTS)


class ClientResponse(ORMModel):
    id: uuid.UUID
    full_name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None
    education_level: Optional[str] = None
    guarantor_id: Optional[uuid.UUID] = None
    balance_cents: int
    created_at: datetime


class LedgerEntryResponse(ORMModel):
    id: uuid.UUID
    client_id: uuid.UUID
    delta_cents: int
    balance_after_cents: int
    kind: str
    reference_id: Optional[uuid.UUID] = None
    created_at: datetime


# Transactions


class TransactionCreate(BaseModel):
    """Request body for POST /transactions"""

    type: Literal["credit", "debit"]
    amount_cents: int = Field(..., gt=0, le=MAX_AMOUNT_CENTS, description="Pre-tax amount in cents")
    sender_client_id: Optional[uuid.UUID] = None
    receiver_client_id: Optional[uuid.UUID] = None
    external_name: Optional[str] = None
    notes: Optional[str] = None


class TransactionResponse(ORMModel):
    id: uuid.UUID
    type: str
    amount_cents: int
    tax_rate: float
    tax_amount_cents: int
    total_amount_cents: int
    sender_client_id: Optional[uuid.UUID] = None
    receiver_client_id: Optional[uuid.UUID] = None
    external_name: Optional[str] = None
    receipt_number: str
    status: str
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    date: datetime


class TransactionCreatedResponse(TransactionResponse):
    tax_log_recorded: bool


# Withdrawals


class WithdrawCreate(BaseModel):
    """Request body for POST /withdraw"""

    client_id: uuid.UUID
    amount_cents: int = Field(..., gt=0, le=MAX_AMOUNT_CENTS)
    notes: Optional[str] = None
    date: Optional[datetime] = None


class WithdrawResponse(ORMModel):
    id: uuid.UUID
    client_id: uuid.UUID
    amount_cents: int
    tax_rate: float
    tax_amount_cents: int
    total_received_cents: int
    status: str
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None
    date: datetime


class WithdrawCreatedResponse(WithdrawResponse):
    client_receives_cents: int
    client_balance_after_cents: int


class WithdrawStatsResponse(BaseModel):
    total_amount_cents: int
    total_tax_cents: int
    total_received_cents: int
    count: int


# Settings


class SettingUpdate(BaseModel):
    value: Any = Field(...)


class SettingResponse(ORMModel):
    key: str
    value: Any = None


# Tax logs


class TaxLogResponse(ORMModel):
    id: uuid.UUID
    sender_client_id: Optional[uuid.UUID] = None
    receiver_client_id: Optional[uuid.UUID] = None
    transaction_id: uuid.UUID
    amount_sent_cents: Optional[int] = None
    amount_received_cents: Optional[int] = None
    profit_cents: Optional[int] = None
    method: Optional[str] = None
    profit_source: str
    description: Optional[str] = None
    date: datetime


# Reports


class TypeTotals(BaseModel):
    total_amount_cents: int
    count: int


class DailyReportResponse(BaseModel):
    date: date
    by_type: Dict[str, TypeTotals]
    total_cents: int
    count: int


class SummaryItem(BaseModel):
    type: str
    total_amount_cents: int
    count: int


class DashboardResponse(BaseModel):
    total_clients: int
    total_guarantors: int
    total_balance_cents: int
    total_profit_cents: int


"""/transactions - credit/debit transfers with tax"""

import time
import logging
import uuid
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from remit_ledger.api.v1.schemas import TransactionCreate, TransactionCreatedResponse, TransactionResponse
from remit_ledger.api.dependencies import require, get_request_id, get_client_ip, parse_id
from remit_ledger.config import settings
from remit_ledger.domain.models import DEBIT, TAX_RATE_KEY, TRANSACTION_STATUSES, TRANSACTION_TYPES
from remit_ledger.domain.receipts import format_receipt_number, RECEIPT_PREFIX_KEY, RECEIPT_COUNTER_NAME
from remit_ledger.domain.tax import parse_tax_rate, quote_transaction
from remit_ledger.domain.exceptions import (
    ValidationError,
    NotFoundError,
    InsufficientBalanceError,
    InvalidSettingError,
)
from remit_ledger.domain.permissions import TRANSACTIONS_READ, TRANSACTIONS_WRITE
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import (
    ClientRepository,
    CounterRepository,
    LedgerEntryRepository,
    SettingRepository,
    TransactionRepository,
    TaxLogRepository,
    AuditLogRepository,
)
from remit_ledger.infrastructure.observability.metrics import record_transaction
from remit_ledger.infrastructure.observability.logging import log_transaction
from remit_ledger.utils.date_utils import utcnow

router = APIRouter()


def next_receipt_number(db: Session) -> str:
    """Prefix from settings plus the next value of the receipt counter"""
    prefix = SettingRepository(db).get_value(RECEIPT_PREFIX_KEY) or settings.default_receipt_prefix
    sequence = CounterRepository(db).next_value(RECEIPT_COUNTER_NAME)
    return format_receipt_number(str(prefix), utcnow(), sequence)


@router.post("/transactions", response_model=TransactionCreatedResponse, status_code=201)
def create_transaction(
    request_body: TransactionCreate,
    request: Request,
    user: User = Depends(require(TRANSACTIONS_WRITE)),
    db: Session = Depends(get_db),
):
    """
    Move money between clients and book the tax.

    Flow (one database transaction):
    1. Read tax rate and quote tax/total
    2. Resolve sender/receiver
    3. Debit sender (conditional on funds) and credit receiver
    4. Insert transaction with a fresh receipt number
    5. Record tax log (best effort) and audit entry
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        # 1. Tax quote
        tax_rate = parse_tax_rate(SettingRepository(db).get_value(TAX_RATE_KEY))
        quote = quote_transaction(request_body.type, request_body.amount_cents, tax_rate)

        # 2. Parties
        clients = ClientRepository(db)
        sender_id = request_body.sender_client_id if quote.type == DEBIT else None
        receiver_id = request_body.receiver_client_id

        if quote.type == DEBIT:
            if not sender_id or not receiver_id:
                raise ValidationError("Sender and Receiver are required for debit")
            if not clients.get(sender_id):
                raise NotFoundError("Sender not found")
            if not clients.get(receiver_id):
                raise NotFoundError("Receiver not found")
        else:
            if not receiver_id:
                raise ValidationError("Receiver is required for credit")
            if not clients.get(receiver_id):
                raise NotFoundError("Receiver not found")

        # 3-4. Balances and record; the id is fixed up front so ledger entries can reference it
        transaction_id = uuid.uuid4()
        ledger = LedgerEntryRepository(db)

        if quote.type == DEBIT:
            sender_balance = ledger.apply_delta(
                sender_id,
                quote.sender_delta_cents,
                kind="transaction_debit",
                reference_id=transaction_id,
                require_funds=True,
            )
            if sender_balance is None:
                raise InsufficientBalanceError("Insufficient balance")

        transaction = TransactionRepository(db).create(
            id=transaction_id,
            type=quote.type,
            amount_cents=quote.amount_cents,
            tax_rate=float(quote.tax_rate),
            tax_amount_cents=quote.tax_amount_cents,
            total_amount_cents=quote.total_amount_cents,
            sender_client_id=sender_id,
            receiver_client_id=receiver_id,
            external_name=request_body.external_name or None,
            receipt_number=next_receipt_number(db),
            notes=request_body.notes or None,
            created_by=user.id,
        )
        ledger.apply_delta(
            receiver_id,
            quote.receiver_delta_cents,
            kind="transaction_credit",
            reference_id=transaction_id,
        )

        # 5. Side effects
        tax_log = TaxLogRepository(db).record_from_transaction(transaction)
        AuditLogRepository(db).record(
            action="create_transaction",
            target_collection="Transaction",
            target_id=transaction.id,
            user_id=user.id,
            ip=get_client_ip(request),
            details={
                "receipt_number": transaction.receipt_number,
                "type": quote.type,
                "amount_cents": quote.amount_cents,
                "tax_rate": float(quote.tax_rate),
                "tax_amount_cents": quote.tax_amount_cents,
            },
        )

        db.commit()

    except ValidationError as e:
        db.rollback()
        record_transaction(request_body.type, "rejected")
        raise HTTPException(status_code=400, detail=str(e))

    except NotFoundError as e:
        db.rollback()
        record_transaction(request_body.type, "rejected")
        raise HTTPException(status_code=404, detail=str(e))

    except InsufficientBalanceError as e:
        db.rollback()
        record_transaction(request_body.type, "rejected")
        logging.warning(f"Insufficient balance: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except InvalidSettingError as e:
        db.rollback()
        record_transaction(request_body.type, "failed")
        logging.error(f"Invalid tax setting: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Transaction failed: tax rate setting is invalid")

    except Exception as e:
        db.rollback()
        record_transaction(request_body.type, "failed")
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Transaction failed")

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_transaction(quote.type, "created", quote.tax_amount_cents)
    log_transaction(
        request_id,
        str(transaction.id),
        transaction.receipt_number,
        quote.type,
        quote.amount_cents,
        quote.tax_amount_cents,
        tax_log.recorded,
        duration_ms,
    )

    db.refresh(transaction)
    return TransactionCreatedResponse(
        **TransactionResponse.model_validate(transaction).model_dump(),
        tax_log_recorded=tax_log.recorded,
    )


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    type: Optional[str] = Query(None),
    client_id: Optional[uuid.UUID] = Query(None),
    status: Optional[str] = Query(None),
    user: User = Depends(require(TRANSACTIONS_READ)),
    db: Session = Depends(get_db),
):
    """Transactions newest first, optionally filtered by date range, type, party or status"""
    if type and type not in TRANSACTION_TYPES:
        raise HTTPException(status_code=400, detail="Invalid transaction type filter")
    if status and status not in TRANSACTION_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status filter")

    return TransactionRepository(db).list(
        start=start,
        end=end,
        type=type,
        client_id=client_id,
        status=status,
        limit=settings.list_limit,
    )


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    user: User = Depends(require(TRANSACTIONS_READ)),
    db: Session = Depends(get_db),
):
    transaction = TransactionRepository(db).get(parse_id(transaction_id, "transaction"))
    if not transaction:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return transaction

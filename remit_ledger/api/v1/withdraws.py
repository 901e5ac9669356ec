"""/withdraw - cash-outs from client balances"""

import time
import logging
import uuid
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from remit_ledger.api.v1.schemas import (
    WithdrawCreate,
    WithdrawCreatedResponse,
    WithdrawResponse,
    WithdrawStatsResponse,
)
from remit_ledger.api.dependencies import require, get_request_id, get_client_ip, parse_id
from remit_ledger.config import settings
from remit_ledger.domain.models import TAX_RATE_KEY
from remit_ledger.domain.tax import parse_tax_rate, quote_withdraw, format_money
from remit_ledger.domain.exceptions import (
    ValidationError,
    NotFoundError,
    InsufficientBalanceError,
    InvalidSettingError,
)
from remit_ledger.domain.permissions import WITHDRAWALS_READ, WITHDRAWALS_WRITE
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import (
    ClientRepository,
    LedgerEntryRepository,
    SettingRepository,
    WithdrawRepository,
    AuditLogRepository,
)
from remit_ledger.infrastructure.observability.metrics import record_withdraw
from remit_ledger.infrastructure.observability.logging import log_withdraw
from remit_ledger.utils.date_utils import utcnow

router = APIRouter()


@router.post("/withdraw", response_model=WithdrawCreatedResponse, status_code=201)
def create_withdraw(
    request_body: WithdrawCreate,
    request: Request,
    user: User = Depends(require(WITHDRAWALS_WRITE)),
    db: Session = Depends(get_db),
):
    """
    Pay out cash to a client.

    The full amount leaves the balance; the client is handed amount - tax
    and the tax stays with the house.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        client = ClientRepository(db).get(request_body.client_id)
        if not client:
            raise NotFoundError("Client not found")

        tax_rate = parse_tax_rate(SettingRepository(db).get_value(TAX_RATE_KEY))
        quote = quote_withdraw(request_body.amount_cents, tax_rate)

        withdraw_id = uuid.uuid4()
        balance_after = LedgerEntryRepository(db).apply_delta(
            client.id,
            -quote.amount_cents,
            kind="withdraw",
            reference_id=withdraw_id,
            require_funds=True,
        )
        if balance_after is None:
            db.refresh(client)
            raise InsufficientBalanceError(
                f"Insufficient balance. Required: {format_money(quote.amount_cents)}, "
                f"Available: {format_money(client.balance_cents)}"
            )

        withdraw = WithdrawRepository(db).create(
            id=withdraw_id,
            client_id=client.id,
            amount_cents=quote.amount_cents,
            tax_rate=float(quote.tax_rate),
            tax_amount_cents=quote.tax_amount_cents,
            total_received_cents=quote.total_received_cents,
            notes=request_body.notes or "",
            date=request_body.date or utcnow(),
            created_by=user.id,
            status="completed",
        )

        AuditLogRepository(db).record(
            action="withdraw_money",
            target_collection="Withdraw",
            target_id=withdraw.id,
            user_id=user.id,
            ip=get_client_ip(request),
            details={
                "client": client.full_name,
                "amount_cents": quote.amount_cents,
                "tax_rate": float(quote.tax_rate),
                "tax_amount_cents": quote.tax_amount_cents,
                "total_received_cents": quote.total_received_cents,
                "client_balance_after_cents": balance_after,
            },
        )

        db.commit()

    except ValidationError as e:
        db.rollback()
        record_withdraw("rejected")
        raise HTTPException(status_code=400, detail=str(e))

    except NotFoundError as e:
        db.rollback()
        record_withdraw("rejected")
        raise HTTPException(status_code=404, detail=str(e))

    except InsufficientBalanceError as e:
        db.rollback()
        record_withdraw("rejected")
        logging.warning(f"Insufficient balance: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except InvalidSettingError as e:
        db.rollback()
        record_withdraw("failed")
        logging.error(f"Invalid tax setting: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Withdraw failed: tax rate setting is invalid")

    except Exception as e:
        db.rollback()
        record_withdraw("failed")
        logging.error(f"Withdraw error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Withdraw failed")

    duration_ms = (time.time() - start_time) * 1000
    record_withdraw("created", quote.tax_amount_cents)
    log_withdraw(
        request_id,
        str(withdraw.id),
        str(client.id),
        quote.amount_cents,
        quote.tax_amount_cents,
        balance_after,
        duration_ms,
    )

    db.refresh(withdraw)
    return WithdrawCreatedResponse(
        **WithdrawResponse.model_validate(withdraw).model_dump(),
        client_receives_cents=quote.total_received_cents,
        client_balance_after_cents=balance_after,
    )


@router.get("/withdraw", response_model=List[WithdrawResponse])
def list_withdraws(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    client_id: Optional[uuid.UUID] = Query(None),
    search: Optional[str] = Query(None),
    user: User = Depends(require(WITHDRAWALS_READ)),
    db: Session = Depends(get_db),
):
    """Withdrawals newest first; end date is inclusive"""
    return WithdrawRepository(db).list(
        start=start,
        end=end,
        client_id=client_id,
        search=search,
        limit=settings.list_limit,
    )


@router.get("/withdraw/stats", response_model=WithdrawStatsResponse)
def get_withdraw_stats(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    user: User = Depends(require(WITHDRAWALS_READ)),
    db: Session = Depends(get_db),
):
    return WithdrawStatsResponse(**WithdrawRepository(db).stats(start=start, end=end))


@router.get("/withdraw/{withdraw_id}", response_model=WithdrawResponse)
def get_withdraw(
    withdraw_id: str,
    user: User = Depends(require(WITHDRAWALS_READ)),
    db: Session = Depends(get_db),
):
    withdraw = WithdrawRepository(db).get(parse_id(withdraw_id, "withdraw"))
    if not withdraw:
        raise HTTPException(status_code=404, detail="Withdraw not found")
    return withdraw

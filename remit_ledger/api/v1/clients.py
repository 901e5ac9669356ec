"""/clients - client profiles, manual balance adjustment and ledger history"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from remit_ledger.api.v1.schemas import (
    ClientCreate,
    ClientUpdate,
    ClientBalanceUpdate,
    ClientResponse,
    LedgerEntryResponse,
)
from remit_ledger.api.dependencies import require, get_client_ip, get_request_id, parse_id
from remit_ledger.config import settings
from remit_ledger.domain.exceptions import DuplicateRecordError, NotFoundError
from remit_ledger.domain.permissions import CLIENTS_READ, CLIENTS_WRITE, CLIENTS_ADJUST_BALANCE
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import (
    ClientRepository,
    GuarantorRepository,
    LedgerEntryRepository,
    AuditLogRepository,
)

router = APIRouter()


@router.post("/clients", response_model=ClientResponse, status_code=201)
def create_client(
    request_body: ClientCreate,
    request: Request,
    user: User = Depends(require(CLIENTS_WRITE)),
    db: Session = Depends(get_db),
):
    """
    Register a client.

    A non-zero balance_cents becomes the client's opening ledger entry.
    """
    clients = ClientRepository(db)
    fields = request_body.model_dump(exclude={"balance_cents"})

    try:
        if clients.get_by_name(request_body.full_name):
            raise DuplicateRecordError("Client with this full name already exists")
        if request_body.guarantor_id and not GuarantorRepository(db).get(request_body.guarantor_id):
            raise NotFoundError("Guarantor not found")

        client = clients.create(**fields)
        if request_body.balance_cents:
            LedgerEntryRepository(db).apply_delta(client.id, request_body.balance_cents, kind="opening")

        AuditLogRepository(db).record(
            action="create_client",
            target_collection="Client",
            target_id=client.id,
            user_id=user.id,
            ip=get_client_ip(request),
            details={"full_name": client.full_name, "balance_cents": request_body.balance_cents},
        )
        db.commit()

    except DuplicateRecordError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except IntegrityError:
        # Lost a race on the unique full_name
        db.rollback()
        raise HTTPException(status_code=400, detail="Client with this full name already exists")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating client: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Server error while creating client")

    db.refresh(client)
    return client


@router.get("/clients", response_model=List[ClientResponse])
def list_clients(
    user: User = Depends(require(CLIENTS_READ)),
    db: Session = Depends(get_db),
):
    return ClientRepository(db).list()


@router.get("/clients/{client_id}", response_model=ClientResponse)
def get_client(
    client_id: str,
    user: User = Depends(require(CLIENTS_READ)),
    db: Session = Depends(get_db),
):
    client = ClientRepository(db).get(parse_id(client_id, "client"))
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.put("/clients/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: str,
    request_body: ClientUpdate,
    request: Request,
    user: User = Depends(require(CLIENTS_WRITE)),
    db: Session = Depends(get_db),
):
    """Update profile fields; balance is not writable here"""
    clients = ClientRepository(db)
    client = clients.get(parse_id(client_id, "client"))
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")

    changes = request_body.model_dump(exclude_unset=True)

    try:
        if "full_name" in changes:
            other = clients.get_by_name(changes["full_name"])
            if other is not None and other.id != client.id:
                raise DuplicateRecordError("Client with this full name already exists")
        if changes.get("guarantor_id") and not GuarantorRepository(db).get(changes["guarantor_id"]):
            raise NotFoundError("Guarantor not found")

        clients.update_profile(client, changes)
        AuditLogRepository(db).record(
            action="update_client",
            target_collection="Client",
            target_id=client.id,
            user_id=user.id,
            ip=get_client_ip(request),
            details={k: str(v) if v is not None else None for k, v in changes.items()},
        )
        db.commit()

    except DuplicateRecordError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except IntegrityError:
        # Lost a race on the unique full_name
        db.rollback()
        raise HTTPException(status_code=400, detail="Client with this full name already exists")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error updating client: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Server error while updating client")

    db.refresh(client)
    return client


@router.put("/clients/balance/{client_id}", response_model=ClientResponse)
def update_client_balance(
    client_id: str,
    request_body: ClientBalanceUpdate,
    request: Request,
    user: User = Depends(require(CLIENTS_ADJUST_BALANCE)),
    db: Session = Depends(get_db),
):
    """Set a balance explicitly; the difference is booked as an adjustment entry"""
    client_uuid = parse_id(client_id, "client")
    entry = LedgerEntryRepository(db).set_balance(client_uuid, request_body.balance_cents)
    if entry is None:
        db.rollback()
        raise HTTPException(status_code=404, detail="Client not found")

    AuditLogRepository(db).record(
        action="update_client_balance",
        target_collection="Client",
        target_id=client_uuid,
        user_id=user.id,
        ip=get_client_ip(request),
        details={"balance_cents": request_body.balance_cents, "delta_cents": entry.delta_cents},
    )
    db.commit()
    return ClientRepository(db).get(client_uuid)


@router.get("/clients/{client_id}/ledger", response_model=List[LedgerEntryResponse])
def get_client_ledger(
    client_id: str,
    user: User = Depends(require(CLIENTS_READ)),
    db: Session = Depends(get_db),
):
    client_uuid = parse_id(client_id, "client")
    if not ClientRepository(db).get(client_uuid):
        raise HTTPException(status_code=404, detail="Client not found")
    return LedgerEntryRepository(db).list_for_client(client_uuid, limit=settings.list_limit)

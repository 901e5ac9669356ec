"""/guarantors - people vouching for clients"""

from typing import List
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from remit_ledger.api.v1.schemas import GuarantorCreate, GuarantorResponse
from remit_ledger.api.dependencies import require, get_client_ip
from remit_ledger.domain.permissions import GUARANTORS_READ, GUARANTORS_WRITE
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import GuarantorRepository, AuditLogRepository

router = APIRouter()


@router.post("/guarantors", response_model=GuarantorResponse, status_code=201)
def create_guarantor(
    request_body: GuarantorCreate,
    request: Request,
    user: User = Depends(require(GUARANTORS_WRITE)),
    db: Session = Depends(get_db),
):
    guarantor = GuarantorRepository(db).create(**request_body.model_dump())
    AuditLogRepository(db).record(
        action="create_guarantor",
        target_collection="Guarantor",
        target_id=guarantor.id,
        user_id=user.id,
        ip=get_client_ip(request),
        details={"full_name": guarantor.full_name},
    )
    db.commit()
    db.refresh(guarantor)
    return guarantor


@router.get("/guarantors", response_model=List[GuarantorResponse])
def list_guarantors(
    user: User = Depends(require(GUARANTORS_READ)),
    db: Session = Depends(get_db),
):
    return GuarantorRepository(db).list()

"""GET /taxlogs - tax revenue per transaction"""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from remit_ledger.api.v1.schemas import TaxLogResponse
from remit_ledger.api.dependencies import require
from remit_ledger.config import settings
from remit_ledger.domain.permissions import TAXLOGS_READ
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import TaxLogRepository

router = APIRouter()


@router.get("/taxlogs", response_model=List[TaxLogResponse])
def list_tax_logs(
    user: User = Depends(require(TAXLOGS_READ)),
    db: Session = Depends(get_db),
):
    return TaxLogRepository(db).list(limit=settings.list_limit)

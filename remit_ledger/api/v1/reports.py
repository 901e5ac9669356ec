"""/reports and /dashboard - read-only aggregates"""

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from remit_ledger.api.v1.schemas import DailyReportResponse, SummaryItem, TypeTotals, DashboardResponse
from remit_ledger.api.dependencies import require
from remit_ledger.domain.permissions import REPORTS_READ, DASHBOARD_READ
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import TransactionRepository, DashboardRepository
from remit_ledger.utils.date_utils import range_bounds, utcnow

router = APIRouter()

EPOCH = date(1970, 1, 1)


@router.get("/reports/daily", response_model=DailyReportResponse)
def daily_report(
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD"),
    user: User = Depends(require(REPORTS_READ)),
    db: Session = Depends(get_db),
):
    """
    Completed transactions of one UTC day, grouped by type.

    Totals use total_amount (amount + tax).
    """
    if day is None:
        raise HTTPException(status_code=400, detail="date=YYYY-MM-DD required")

    rows = TransactionRepository(db).daily_totals(day)
    return DailyReportResponse(
        date=day,
        by_type={
            row["type"]: TypeTotals(total_amount_cents=row["total_amount_cents"], count=row["count"])
            for row in rows
        },
        total_cents=sum(row["total_amount_cents"] for row in rows),
        count=sum(row["count"] for row in rows),
    )


@router.get("/reports/summary", response_model=List[SummaryItem])
def summary_report(
    start: Optional[date] = Query(None),
    end: Optional[date] = Query(None),
    user: User = Depends(require(REPORTS_READ)),
    db: Session = Depends(get_db),
):
    """Completed transaction totals per type between start (default epoch) and end (default today)"""
    lower, upper = range_bounds(start or EPOCH, end or utcnow().date())
    return [SummaryItem(**row) for row in TransactionRepository(db).totals_by_type(lower, upper)]


@router.get("/dashboard", response_model=DashboardResponse)
def dashboard(
    user: User = Depends(require(DASHBOARD_READ)),
    db: Session = Depends(get_db),
):
    return DashboardResponse(**DashboardRepository(db).totals())

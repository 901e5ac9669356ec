"""/settings - runtime key/value settings such as the tax rate"""

from typing import List
from fastapi import APIRouter, Depends, HTTPException, Path, Request
from sqlalchemy.orm import Session

from remit_ledger.api.v1.schemas import SettingUpdate, SettingResponse
from remit_ledger.api.dependencies import require, get_client_ip
from remit_ledger.domain.models import SETTING_KEY_MAX_LENGTH, TAX_RATE_KEY
from remit_ledger.domain.tax import parse_tax_rate
from remit_ledger.domain.exceptions import InvalidSettingError
from remit_ledger.domain.permissions import SETTINGS_READ, SETTINGS_WRITE
from remit_ledger.infrastructure.database.session import get_db
from remit_ledger.infrastructure.database.models import User
from remit_ledger.infrastructure.database.repositories import SettingRepository, AuditLogRepository

router = APIRouter()


@router.get("/settings", response_model=List[SettingResponse])
def list_settings(
    user: User = Depends(require(SETTINGS_READ)),
    db: Session = Depends(get_db),
):
    return SettingRepository(db).list()


@router.get("/settings/{key}", response_model=SettingResponse)
def get_setting(
    key: str = Path(..., min_length=1, max_length=SETTING_KEY_MAX_LENGTH),
    user: User = Depends(require(SETTINGS_READ)),
    db: Session = Depends(get_db),
):
    """Return a setting, creating it with its default on first read"""
    setting = SettingRepository(db).get_or_create_default(key)
    db.commit()
    return setting


@router.put("/settings/{key}", response_model=SettingResponse)
def upsert_setting(
    request_body: SettingUpdate,
    request: Request,
    key: str = Path(..., min_length=1, max_length=SETTING_KEY_MAX_LENGTH),
    user: User = Depends(require(SETTINGS_WRITE)),
    db: Session = Depends(get_db),
):
    value = request_body.value
    if key == TAX_RATE_KEY:
        try:
            parse_tax_rate(value)
        except InvalidSettingError as e:
            raise HTTPException(status_code=400, detail=str(e))

    setting = SettingRepository(db).upsert(key, value)
    AuditLogRepository(db).record(
        action="update_setting",
        target_collection="Settings",
        target_id=setting.id,
        user_id=user.id,
        ip=get_client_ip(request),
        details={"key": key, "value": value},
    )
    db.commit()
    db.refresh(setting)
    return setting

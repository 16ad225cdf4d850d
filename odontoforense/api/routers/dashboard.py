"""
Dashboard and audit API routers
"""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from odontoforense.api.auth import get_current_user, require_admin
from odontoforense.api.dependencies import get_audit_log
from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.audit_log import AuditLog
from odontoforense.services.dashboard_service import build_summary
from odontoforense.utils.response import success_response

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

audit_router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/summary")
def dashboard_summary(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    return success_response(summary=build_summary(db))


@audit_router.get("")
def list_audit_entries(
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    audit_log: AuditLog = Depends(get_audit_log),
    _: User = Depends(require_admin),
):
    """Audit trail in insertion order (admin only)"""
    entries = audit_log.list(entity_type=entity_type, entity_id=entity_id)
    return success_response(entries=[entry.to_json() for entry in entries])

"""
Case API router
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from odontoforense.api.auth import get_current_user, require_case_manager
from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.case_service import CaseService
from odontoforense.utils.constants import CaseStatus
from odontoforense.utils.response import success_response

router = APIRouter(prefix="/api/cases", tags=["cases"])


class CaseCreateRequest(BaseModel):
    name: str
    location: str
    description: str
    category: str
    examiner_id: str
    status: str = CaseStatus.OPEN.value
    opened_at: Optional[datetime] = None


class CaseUpdateRequest(BaseModel):
    name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    examiner_id: Optional[str] = None
    status: Optional[str] = None
    opened_at: Optional[datetime] = None


@router.post("", status_code=status.HTTP_201_CREATED)
def create_case(
    request: CaseCreateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_case_manager),
):
    case = CaseService(db).create(**request.model_dump())
    return success_response(case=case.to_json())


@router.get("")
def list_cases(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    cases = CaseService(db).list()
    return success_response(cases=[case.to_json() for case in cases])


@router.get("/{case_id}")
def get_case(case_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    case = CaseService(db).get(case_id)
    return success_response(case=case.to_json())


@router.put("/{case_id}")
def update_case(
    case_id: str,
    request: CaseUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_case_manager),
):
    case = CaseService(db).update(case_id, request.model_dump(exclude_none=True))
    return success_response(case=case.to_json())


@router.delete("/{case_id}")
def delete_case(case_id: str, db: Session = Depends(get_db), _: User = Depends(require_case_manager)):
    CaseService(db).delete(case_id)
    return success_response(message="Case deleted")

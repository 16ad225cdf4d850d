"""
Victim API router
"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from odontoforense.api.auth import get_current_user
from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.victim_service import VictimService
from odontoforense.utils.response import success_response

router = APIRouter(prefix="/api/victims", tags=["victims"])


class VictimCreateRequest(BaseModel):
    case_id: str
    anatomical_note: str
    nic: Optional[str] = None
    name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    cpf: Optional[str] = None
    address: Optional[str] = None
    ethnicity: Optional[str] = None
    odontogram: Optional[Dict[str, List[str]]] = None


class VictimUpdateRequest(BaseModel):
    anatomical_note: Optional[str] = None
    name: Optional[str] = None
    gender: Optional[str] = None
    age: Optional[int] = None
    cpf: Optional[str] = None
    address: Optional[str] = None
    ethnicity: Optional[str] = None
    odontogram: Optional[Dict[str, List[str]]] = None


@router.post("", status_code=status.HTTP_201_CREATED)
def create_victim(
    request: VictimCreateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    data = request.model_dump(exclude={"case_id"})
    victim = VictimService(db).create(request.case_id, data)
    return success_response(victim=victim.to_json())


@router.get("")
def list_victims(
    case_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    victims = VictimService(db).list(case_id)
    return success_response(victims=[victim.to_json() for victim in victims])


@router.get("/paged/{page}/{size}")
def list_victims_paged(
    page: int,
    size: int,
    case_id: Optional[str] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    total, items = VictimService(db).page(page, size, case_id)
    return success_response(total=total, items=[victim.to_json() for victim in items])


@router.get("/{victim_id}")
def get_victim(victim_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    victim = VictimService(db).get(victim_id)
    return success_response(victim=victim.to_json())


@router.put("/{victim_id}")
def update_victim(
    victim_id: str,
    request: VictimUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    victim = VictimService(db).update(victim_id, request.model_dump(exclude_unset=True))
    return success_response(victim=victim.to_json())


@router.delete("/{victim_id}")
def delete_victim(victim_id: str, db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    VictimService(db).delete(victim_id)
    return success_response(message="Victim deleted")

"""
Examiner listing API router
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from odontoforense.api.auth import get_current_user
from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.user_service import UserService
from odontoforense.utils.response import success_response

router = APIRouter(prefix="/api/examiners", tags=["examiners"])


@router.get("")
def list_examiners(db: Session = Depends(get_db), _: User = Depends(get_current_user)):
    """Users with the examiner role, by name"""
    examiners = UserService(db).list_examiners()
    return success_response(examiners=[examiner.to_json() for examiner in examiners])

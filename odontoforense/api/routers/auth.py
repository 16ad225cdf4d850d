"""
Authentication and user administration API router
"""
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from odontoforense.api.auth import get_current_user, require_admin
from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.user_service import UserService, create_access_token
from odontoforense.utils.response import success_response
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


# Request models
class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    cpf: str
    email: str
    name: str
    role: str
    password: str


class UserUpdateRequest(BaseModel):
    cpf: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    password: Optional[str] = None


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """Exchange credentials for an access token"""
    user = UserService(db).authenticate(request.email, request.password)
    logger.info(f"User logged in: {user.id}")
    return success_response(token=create_access_token(user), user=user.to_json())


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    """Register an assistant or examiner (admin only)"""
    user = UserService(db).register(
        cpf=request.cpf,
        email=request.email,
        name=request.name,
        role=request.role,
        password=request.password,
    )
    return success_response(user=user.to_json())


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return success_response(user=user.to_json())


@router.get("/users")
def list_users(db: Session = Depends(get_db), _: User = Depends(require_admin)):
    users = UserService(db).list()
    return success_response(users=[user.to_json() for user in users])


@router.put("/users/{user_id}")
def update_user(
    user_id: str,
    request: UserUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    user = UserService(db).update(user_id, request.model_dump(exclude_none=True))
    return success_response(user=user.to_json())


@router.delete("/users/{user_id}")
def delete_user(user_id: str, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    UserService(db).delete(user_id)
    return success_response(message="User deleted")

"""
User accounts and token issuance
"""
from datetime import timedelta
from typing import Any, Dict, List, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config.settings import settings
from odontoforense.db.models import User
from odontoforense.services.directories import UserDirectory
from odontoforense.utils.constants import REGISTRABLE_ROLES, UserRole
from odontoforense.utils.exceptions import (
    AuthenticationError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from odontoforense.utils.helpers import utcnow, validate_cpf
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user: User, expires_minutes: Optional[int] = None) -> str:
    """
    Issue a signed access token for a user

    Args:
        user: authenticated user
        expires_minutes: lifetime override (defaults to settings)

    Returns:
        Encoded JWT with sub, role and exp claims
    """
    lifetime = timedelta(minutes=expires_minutes or settings.access_token_expire_minutes)
    claims = {
        "sub": user.id,
        "role": user.role,
        "exp": utcnow() + lifetime,
    }
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify an access token

    Raises:
        AuthenticationError: when the token is invalid or expired
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token") from e

    if not claims.get("sub"):
        raise AuthenticationError("Invalid or expired token")
    return claims


class UserService:
    """User registration, lookup and maintenance"""

    def __init__(self, session: Session):
        self.session = session
        self.directory = UserDirectory(session)

    def authenticate(self, email: str, password: str) -> User:
        """
        Check credentials

        Raises:
            AuthenticationError: unknown e-mail or wrong password
        """
        user = self.directory.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError()
        return user

    def _check_unique(self, cpf: Optional[str], email: Optional[str], exclude_id: Optional[str] = None):
        if cpf:
            existing = self.directory.find_by_cpf(cpf)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateError("CPF already registered", field="cpf")
        if email:
            existing = self.directory.find_by_email(email)
            if existing is not None and existing.id != exclude_id:
                raise DuplicateError("email already registered", field="email")

    def create_user(self, cpf: str, email: str, name: str, role: str, password: str) -> User:
        """
        Create a user with any role

        Raises:
            ValidationError: invalid CPF or role
            DuplicateError: CPF or e-mail already registered
        """
        if not validate_cpf(cpf):
            raise ValidationError("invalid CPF", field="cpf")
        if role not in {r.value for r in UserRole}:
            raise ValidationError(f"invalid role: {role}", field="role")

        self._check_unique(cpf, email)

        user = User(
            cpf=cpf,
            email=email,
            name=name,
            role=role,
            password_hash=hash_password(password),
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateError("CPF or email already registered") from e

        logger.info(f"User created: {user.id} ({role})")
        return user

    def register(self, cpf: str, email: str, name: str, role: str, password: str) -> User:
        """Register an assistant or examiner"""
        if role not in REGISTRABLE_ROLES:
            raise ValidationError("role must be assistant or examiner", field="role")
        return self.create_user(cpf, email, name, role, password)

    def get(self, user_id: str) -> User:
        user = self.directory.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def list(self) -> List[User]:
        return self.directory.find_all()

    def list_examiners(self) -> List[User]:
        return self.directory.find_examiners()

    def update(self, user_id: str, changes: Dict[str, Any]) -> User:
        """
        Apply changes to a user

        Args:
            user_id: user to update
            changes: any of cpf, email, name, role, password

        Raises:
            NotFoundError: unknown user
            ValidationError: invalid CPF or role
            DuplicateError: CPF or e-mail taken by another user
        """
        user = self.get(user_id)

        if "cpf" in changes and not validate_cpf(changes["cpf"]):
            raise ValidationError("invalid CPF", field="cpf")
        if "role" in changes and changes["role"] not in {r.value for r in UserRole}:
            raise ValidationError(f"invalid role: {changes['role']}", field="role")

        self._check_unique(changes.get("cpf"), changes.get("email"), exclude_id=user.id)

        for field in ("cpf", "email", "name", "role"):
            if field in changes:
                setattr(user, field, changes[field])
        if changes.get("password"):
            user.password_hash = hash_password(changes["password"])

        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateError("CPF or email already registered") from e

        logger.info(f"User updated: {user.id}")
        return user

    def delete(self, user_id: str) -> None:
        user = self.get(user_id)
        self.session.delete(user)
        self.session.commit()
        logger.info(f"User deleted: {user_id}")

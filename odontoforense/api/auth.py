"""
API authentication
"""
from typing import Callable, Iterable, Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from odontoforense.db.connection import get_db
from odontoforense.db.models import User
from odontoforense.services.directories import UserDirectory
from odontoforense.services.user_service import decode_access_token
from odontoforense.utils.constants import CASE_MANAGER_ROLES, UserRole
from odontoforense.utils.exceptions import AuthenticationError, PermissionDeniedError
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Resolve the bearer token to a user

    Args:
        credentials: HTTP Bearer token
        db: database session

    Returns:
        Authenticated user

    Raises:
        AuthenticationError: missing, invalid or expired token, or deleted user
    """
    if credentials is None:
        raise AuthenticationError("Authentication token missing")

    claims = decode_access_token(credentials.credentials)
    user = UserDirectory(db).find_by_id(claims["sub"])
    if user is None:
        logger.warning(f"Token for unknown user: {claims['sub']}")
        raise AuthenticationError("Invalid or expired token")
    return user


def require_roles(roles: Iterable[str]) -> Callable[..., User]:
    """
    Build a dependency that only lets the given roles through

    Args:
        roles: allowed role values

    Returns:
        FastAPI dependency returning the authenticated user
    """
    allowed = frozenset(roles)

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            logger.warning(f"Access denied for {user.id} ({user.role})")
            raise PermissionDeniedError()
        return user

    return dependency


require_admin = require_roles({UserRole.ADMIN.value})
require_case_manager = require_roles(CASE_MANAGER_ROLES)

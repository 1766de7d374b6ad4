from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer

from pharmatrack.core.config import settings
from pharmatrack.core.exceptions import AuthenticationError, AuthorizationError, DatabaseError
from pharmatrack.domain.auth.models import UserRole
from pharmatrack.domain.auth.principal import Principal
from pharmatrack.domain.auth.service import AuthenticationService
from pharmatrack.domain.drugs.store import DrugStore
from pharmatrack.infrastructure.database import get_db

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/auth/login",
    auto_error=False,
)


def get_store(request: Request) -> DrugStore:
    """The drug store built at startup"""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise DatabaseError(message="Drug store is not initialized", error_code="STORE_NOT_READY")
    return store


def get_token(token: Optional[str] = Depends(reusable_oauth2)) -> str:
    if not token:
        raise AuthenticationError(message="Not authenticated")
    return token


def get_current_principal(
    token: str = Depends(get_token),
    db = Depends(get_db)
) -> Principal:
    return AuthenticationService(db).resolve_principal(token)


def require_action(action: str):
    """Dependency factory gating a route on one capability"""
    def action_checker(principal = Depends(get_current_principal)):
        if not principal.can(action):
            raise AuthorizationError(
                message="Insufficient permissions",
                details={"action": action, "role": principal.role.value},
            )
        return principal

    return action_checker


def require_roles(*roles: UserRole):
    """Any of the given roles; admin always passes"""
    def role_checker(principal = Depends(get_current_principal)):
        if not any(principal.has_role(role) for role in roles):
            raise AuthorizationError(
                message="Insufficient permissions",
                details={"required_roles": [r.value for r in roles], "role": principal.role.value},
            )
        return principal

    return role_checker

from fastapi import APIRouter, Depends, status
from typing import List

from pharmatrack.api.deps import get_current_principal, get_token, require_action
from pharmatrack.core.permissions import Permissions, ROLE_PERMISSIONS
from pharmatrack.domain.auth.service import AuthenticationService, SessionGrant, demo_credentials
from pharmatrack.infrastructure.database import get_db
from pharmatrack.api.v1.auth.schemas import (
    LoginRequest,
    WalletLoginRequest,
    RegisterRequest,
    PrincipalResponse,
    SessionResponse,
    UserResponse,
    DemoCredential,
    SuccessResponse
)

router = APIRouter()


def principal_response(principal) -> PrincipalResponse:
    return PrincipalResponse(
        kind=principal.kind,
        subject=principal.subject,
        username=principal.username,
        email=principal.email,
        role=principal.role,
        name=principal.name,
        organization=principal.organization,
        permissions=sorted(ROLE_PERMISSIONS.get(principal.role, ())),
    )


def session_response(grant: SessionGrant) -> SessionResponse:
    return SessionResponse(
        access_token=grant.token,
        expires_at=grant.expires_at,
        user=principal_response(grant.principal),
    )


@router.post("/login", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def login(
    login_data: LoginRequest,
    db = Depends(get_db)
):
    """Authenticate with username and password"""
    grant = AuthenticationService(db).login(login_data.username, login_data.password)
    return session_response(grant)


@router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: RegisterRequest,
    db = Depends(get_db)
):
    """Create an account and sign it in"""
    grant = AuthenticationService(db).register(user_data.model_dump())
    return session_response(grant)


@router.post("/wallet-login", response_model=SessionResponse, status_code=status.HTTP_200_OK)
def wallet_login(
    wallet_data: WalletLoginRequest,
    db = Depends(get_db)
):
    """Sign in with a wallet address"""
    grant = AuthenticationService(db).wallet_login(wallet_data.address)
    return session_response(grant)


@router.get("/me", response_model=PrincipalResponse)
def get_current_user_info(
    principal = Depends(get_current_principal)
):
    return principal_response(principal)


@router.post("/logout", response_model=SuccessResponse)
def logout(
    token: str = Depends(get_token),
    db = Depends(get_db)
):
    """Close the current session"""
    closed = AuthenticationService(db).logout(token)
    return SuccessResponse(success=closed, message="Logged out" if closed else "No active session")


@router.get("/demo-credentials", response_model=List[DemoCredential])
def get_demo_credentials():
    return demo_credentials()


@router.get("/users", response_model=List[UserResponse])
def list_users(
    db = Depends(get_db),
    principal = Depends(require_action(Permissions.MANAGE_USERS))
):
    """List every account (admin only)"""
    return AuthenticationService(db).list_users()


@router.post("/users/reset-demo", response_model=SuccessResponse)
def reset_demo_users(
    db = Depends(get_db),
    principal = Depends(require_action(Permissions.MANAGE_USERS))
):
    """Drop all accounts and sessions and restore the demo accounts"""
    restored = AuthenticationService(db).reset_demo_users()
    return SuccessResponse(message=f"Restored {restored} demo users")

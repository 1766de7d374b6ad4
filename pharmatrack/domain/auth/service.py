from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from dataclasses import dataclass

from loguru import logger

from pharmatrack.core.config import settings
from pharmatrack.core.exceptions import (
    AuthenticationError, AuthorizationError, ConflictError, ValidationError
)
from pharmatrack.core.security import create_session_token, decode_token
from pharmatrack.domain.auth.models import User, UserRole, PrincipalKind
from pharmatrack.domain.auth.principal import PasswordPrincipal, Principal, WalletPrincipal
from pharmatrack.domain.auth.repository import UserRepository, SessionRepository
from pharmatrack.domain.auth.wallet import derive_wallet_identity

DEMO_USERS: List[Dict[str, Any]] = [
    {
        "id": "admin-001",
        "username": "admin",
        "email": "admin@pharmatrackindia.com",
        "role": UserRole.ADMIN,
        "name": "System Administrator",
        "organization": "PharmaTrack India",
        "description": "Full system access",
    },
    {
        "id": "mfg-001",
        "username": "manufacturer",
        "email": "contact@manufacturer.com",
        "role": UserRole.MANUFACTURER,
        "name": "Drug Manufacturer",
        "organization": "Pharma Manufacturing Ltd.",
        "description": "Drug creation and QR generation",
    },
    {
        "id": "dist-001",
        "username": "distributor",
        "email": "ops@distributor.com",
        "role": UserRole.DISTRIBUTOR,
        "name": "Drug Distributor",
        "organization": "Pharma Distribution Ltd.",
        "description": "Distribution management",
    },
    {
        "id": "pharm-001",
        "username": "pharmacy",
        "email": "manager@pharmacy.com",
        "role": UserRole.PHARMACY,
        "name": "Local Pharmacy",
        "organization": "City Pharmacy Chain",
        "description": "Inventory and order management",
    },
    {
        "id": "cust-001",
        "username": "customer",
        "email": "customer@pharmatrackindia.com",
        "role": UserRole.CUSTOMER,
        "name": "Customer User",
        "organization": "Individual Customer",
        "description": "Drug tracking and verification",
    },
]

ROLE_TITLES = {
    UserRole.ADMIN: "Administrator",
    UserRole.MANUFACTURER: "Manufacturer",
    UserRole.DISTRIBUTOR: "Distributor",
    UserRole.PHARMACY: "Pharmacy",
    UserRole.CUSTOMER: "Customer",
}


def demo_password(username: str) -> str:
    return f"{username}123"


def demo_credentials() -> List[Dict[str, str]]:
    """Sign-in hints for the demo accounts"""
    return [
        {
            "username": demo["username"],
            "password": demo_password(demo["username"]),
            "role": ROLE_TITLES[demo["role"]],
            "description": demo["description"],
        }
        for demo in DEMO_USERS
    ]


@dataclass
class SessionGrant:
    token: str
    expires_at: datetime
    principal: Any


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _user_principal(user: User, session_id: Optional[str] = None) -> PasswordPrincipal:
    return PasswordPrincipal(
        user_id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        name=user.name,
        organization=user.organization or "",
        session_id=session_id,
    )


class AuthenticationService:
    """Service layer for authentication operations"""

    def __init__(self, db):
        self.db = db
        self.user_repo = UserRepository(db)
        self.session_repo = SessionRepository(db)

    # ==================== Demo accounts ====================

    def ensure_demo_users(self) -> int:
        """Create any missing demo account; returns how many were added"""
        created = 0
        for demo in DEMO_USERS:
            if self.user_repo.get_by_id(demo["id"]) or self.user_repo.username_taken(demo["username"]):
                continue
            data = {k: v for k, v in demo.items() if k != "description"}
            data["is_demo"] = True
            self.user_repo.create(data, demo_password(demo["username"]))
            created += 1
        if created:
            logger.info(f"Created {created} demo users")
        return created

    def reset_demo_users(self) -> int:
        """Drop every user and session, then restore the demo accounts"""
        self.user_repo.delete_all()
        logger.warning("User store reset to demo accounts")
        return self.ensure_demo_users()

    # ==================== Sessions ====================

    def _open_session(self, kind: PrincipalKind, subject: str, role: UserRole,
                      name: str, organization: str) -> tuple:
        token, expires_at = create_session_token(subject, {"kind": kind.value, "role": role.value})
        payload = decode_token(token)
        self.session_repo.create({
            "id": payload["jti"],
            "kind": kind,
            "subject": subject,
            "role": role,
            "name": name,
            "organization": organization,
            "expires_at": expires_at,
        })
        return token, expires_at, payload["jti"]

    def login(self, username: str, password: str) -> SessionGrant:
        """Authenticate with username and password"""
        user = self.user_repo.get_active_by_username(username)
        if not user:
            logger.info(f"Login failed for unknown or inactive user {username}")
            raise AuthenticationError(message="Invalid username or password")

        if len(password) < settings.MIN_PASSWORD_LENGTH or not user.verify_password(password):
            logger.info(f"Login failed for {username}: bad password")
            raise AuthenticationError(message="Invalid username or password")

        self.user_repo.update_last_login(user, _now())
        token, expires_at, session_id = self._open_session(
            PrincipalKind.PASSWORD, user.id, user.role, user.name, user.organization or ""
        )
        logger.info(f"User {user.username} logged in as {user.role.value}")
        return SessionGrant(token=token, expires_at=expires_at, principal=_user_principal(user, session_id))

    def register(self, data: Dict[str, Any]) -> SessionGrant:
        """Create an account and log it in"""
        role = UserRole(data["role"])
        if role == UserRole.ADMIN:
            raise AuthorizationError(message="Administrator accounts cannot be self-registered")

        password = data["password"]
        if len(password) < settings.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                message=f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
                details={"field": "password"},
            )
        if self.user_repo.username_taken(data["username"]):
            raise ConflictError(message="Username already exists", details={"field": "username"})
        if self.user_repo.email_taken(data["email"]):
            raise ConflictError(message="Email already exists", details={"field": "email"})

        user = self.user_repo.create({
            "username": data["username"],
            "email": data["email"],
            "name": data["name"],
            "organization": data.get("organization") or "",
            "role": role,
            "last_login_at": _now(),
        }, password)
        logger.info(f"Registered {user.username} as {role.value}")

        token, expires_at, session_id = self._open_session(
            PrincipalKind.PASSWORD, user.id, user.role, user.name, user.organization or ""
        )
        return SessionGrant(token=token, expires_at=expires_at, principal=_user_principal(user, session_id))

    def wallet_login(self, address: str) -> SessionGrant:
        """Open a session for a wallet address; the role comes from the address"""
        identity = derive_wallet_identity(address)
        token, expires_at, session_id = self._open_session(
            PrincipalKind.WALLET, identity.address, identity.role, identity.name, identity.organization
        )
        logger.info(f"Wallet {identity.address} logged in as {identity.role.value}")
        principal = WalletPrincipal(
            address=identity.address,
            role=identity.role,
            name=identity.name,
            organization=identity.organization,
            session_id=session_id,
        )
        return SessionGrant(token=token, expires_at=expires_at, principal=principal)

    def resolve_principal(self, token: str) -> Principal:
        """Turn a bearer token back into the principal it was issued for"""
        payload = decode_token(token)
        if not payload or "jti" not in payload:
            raise AuthenticationError(message="Could not validate credentials")

        session = self.session_repo.get(payload["jti"])
        if not session or not session.is_active or session.is_expired(_now()):
            raise AuthenticationError(message="Session expired or revoked")

        if session.kind == PrincipalKind.WALLET:
            return WalletPrincipal(
                address=session.subject,
                role=session.role,
                name=session.name or "",
                organization=session.organization or "",
                session_id=session.id,
            )

        user = self.user_repo.get_by_id(session.subject)
        if not user or not user.is_active:
            raise AuthenticationError(message="User not found or inactive")
        return _user_principal(user, session.id)

    def logout(self, token: str) -> bool:
        payload = decode_token(token)
        if not payload or "jti" not in payload:
            return False
        session = self.session_repo.get(payload["jti"])
        if not session or not session.is_active:
            return False
        self.session_repo.revoke(session)
        logger.info(f"Session {session.id} for {session.subject} closed")
        return True

    def list_users(self) -> List[User]:
        return self.user_repo.get_all()

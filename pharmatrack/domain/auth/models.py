from sqlalchemy import Column, String, Boolean, DateTime, Enum
from pharmatrack.infrastructure.database import Base, utcnow, as_utc
import uuid
import enum


class UserRole(str, enum.Enum):
    """User roles in the supply chain"""
    ADMIN = "admin"
    MANUFACTURER = "manufacturer"
    DISTRIBUTOR = "distributor"
    PHARMACY = "pharmacy"
    CUSTOMER = "customer"


class PrincipalKind(str, enum.Enum):
    """How a session was opened"""
    PASSWORD = "password"
    WALLET = "wallet"


def _enum_values(enum_cls):
    return [m.value for m in enum_cls]


class User(Base):
    """User model for authentication and authorization"""
    __tablename__ = "users"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    name = Column(String(200), nullable=False)
    organization = Column(String(200), nullable=False, default="")
    role = Column(
        Enum(UserRole, values_callable=_enum_values),
        nullable=False,
        default=UserRole.CUSTOMER
    )

    is_active = Column(Boolean, default=True)
    is_demo = Column(Boolean, default=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow)
    last_login_at = Column(DateTime(timezone=True))

    def set_password(self, password: str):
        """Set password hash"""
        from pharmatrack.core.security import get_password_hash
        self.password_hash = get_password_hash(password)

    def verify_password(self, password: str) -> bool:
        """Verify password"""
        from pharmatrack.core.security import verify_password
        return verify_password(password, self.password_hash)


class UserSession(Base):
    """Issued session, kept so that logout can revoke the token"""
    __tablename__ = "user_sessions"

    id = Column(String(64), primary_key=True)  # token jti
    kind = Column(Enum(PrincipalKind, values_callable=_enum_values), nullable=False)
    subject = Column(String(255), nullable=False, index=True)
    role = Column(Enum(UserRole, values_callable=_enum_values), nullable=False)

    # wallet sessions have no user row, so the display data lives here
    name = Column(String(200))
    organization = Column(String(200))

    is_active = Column(Boolean, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def is_expired(self, now=None) -> bool:
        """Check if session is expired"""
        return (now or utcnow()) > as_utc(self.expires_at)

    def revoke(self):
        """Revoke the session"""
        self.is_active = False

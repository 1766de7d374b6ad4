from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any, Tuple
import uuid
import jwt
from passlib.context import CryptContext
from pharmatrack.core.config import settings

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Generate password hash"""
    return pwd_context.hash(password)


def create_session_token(subject: str, data: Dict[str, Any]) -> Tuple[str, datetime]:
    """Create a signed session token, returns the token and its expiry"""
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + timedelta(hours=settings.SESSION_EXPIRE_HOURS)
    to_encode = data.copy()
    to_encode.update({
        "exp": expire,
        "iat": issued_at,
        "sub": subject,
        "jti": uuid.uuid4().hex,
        "token_type": "session"
    })
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt, expire


def decode_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate a session token"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None

    if payload.get("token_type") != "session":
        return None

    return payload

from typing import Optional, List
from datetime import datetime
from sqlalchemy import func, delete
from sqlalchemy.orm import Session
from pharmatrack.domain.auth.models import User, UserSession


class UserRepository:
    """Repository for user data access operations"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_data: dict, password: str) -> User:
        """Create a new user"""
        user = User(**user_data)
        user.set_password(password)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_active_by_username(self, username: str) -> Optional[User]:
        """Exact, case-sensitive username match"""
        return self.db.query(User).filter(
            User.username == username,
            User.is_active == True  # noqa: E712
        ).first()

    def username_taken(self, username: str) -> bool:
        return self.db.query(User).filter(
            func.lower(User.username) == username.lower()
        ).first() is not None

    def email_taken(self, email: str) -> bool:
        return self.db.query(User).filter(
            func.lower(User.email) == email.lower()
        ).first() is not None

    def get_all(self) -> List[User]:
        return self.db.query(User).order_by(User.created_at).all()

    def update_last_login(self, user: User, when: datetime) -> None:
        user.last_login_at = when
        self.db.commit()

    def delete_all(self) -> None:
        self.db.execute(delete(UserSession))
        self.db.execute(delete(User))
        self.db.commit()


class SessionRepository:
    """Repository for issued sessions"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, session_data: dict) -> UserSession:
        session = UserSession(**session_data)
        self.db.add(session)
        self.db.commit()
        return session

    def get(self, session_id: str) -> Optional[UserSession]:
        return self.db.query(UserSession).filter(UserSession.id == session_id).first()

    def revoke(self, session: UserSession) -> None:
        session.revoke()
        self.db.commit()

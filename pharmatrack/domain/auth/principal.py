"""
The caller behind a request.

A session is opened either with a username/password (``password``) or with a
wallet address (``wallet``). Both kinds expose the same role based checks so
callers never branch on how the user logged in.
"""
from typing import Literal, Optional, Union

from pydantic import BaseModel

from pharmatrack.core import permissions
from pharmatrack.domain.auth.models import UserRole


class _PrincipalBase(BaseModel):
    role: UserRole
    name: str
    organization: str = ""
    session_id: Optional[str] = None

    def can(self, action: str) -> bool:
        return permissions.can_perform_action(self.role, action)

    def has_role(self, role: UserRole) -> bool:
        return permissions.has_role(self.role, role)


class PasswordPrincipal(_PrincipalBase):
    kind: Literal["password"] = "password"
    user_id: str
    username: str
    email: str

    @property
    def subject(self) -> str:
        return self.user_id


class WalletPrincipal(_PrincipalBase):
    kind: Literal["wallet"] = "wallet"
    address: str

    @property
    def subject(self) -> str:
        return self.address

    @property
    def username(self) -> str:
        return self.address

    @property
    def email(self) -> str:
        return f"{self.address}@blockchain.user"


Principal = Union[PasswordPrincipal, WalletPrincipal]

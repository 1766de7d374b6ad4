import re
from dataclasses import dataclass

from pharmatrack.core.exceptions import ValidationError
from pharmatrack.domain.auth.models import UserRole

WALLET_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")

# order matters: the role is picked by index
WALLET_ROLES = (
    UserRole.ADMIN,
    UserRole.MANUFACTURER,
    UserRole.DISTRIBUTOR,
    UserRole.PHARMACY,
    UserRole.CUSTOMER,
)


@dataclass(frozen=True)
class WalletIdentity:
    address: str
    role: UserRole
    name: str
    organization: str


def validate_wallet_address(address: str) -> str:
    address = (address or "").strip()
    if not WALLET_ADDRESS.match(address):
        raise ValidationError(
            message="Invalid wallet address",
            details={"address": address},
            error_code="INVALID_WALLET_ADDRESS",
        )
    return address


def derive_wallet_identity(address: str) -> WalletIdentity:
    """Shadow identity for a wallet; no chain is consulted"""
    address = validate_wallet_address(address)
    role = WALLET_ROLES[int(address[2:10], 16) % len(WALLET_ROLES)]
    return WalletIdentity(
        address=address,
        role=role,
        name=f"User {address[:8]}",
        organization=f"Organization {address[:6]}",
    )

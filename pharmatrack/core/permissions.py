from typing import Dict, FrozenSet, Union

from pharmatrack.domain.auth.models import UserRole


class Permissions:
    """Actions gated by role"""

    CREATE_DRUG = "create_drug"
    TRANSFER_DRUG = "transfer_drug"
    SELL_DRUG = "sell_drug"
    VIEW_ALL = "view_all"
    MANAGE_USERS = "manage_users"
    GENERATE_QR = "generate_qr"
    SCAN_QR = "scan_qr"


ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[str]] = {
    UserRole.ADMIN: frozenset({
        Permissions.CREATE_DRUG, Permissions.TRANSFER_DRUG, Permissions.SELL_DRUG,
        Permissions.VIEW_ALL, Permissions.MANAGE_USERS,
        Permissions.GENERATE_QR, Permissions.SCAN_QR,
    }),
    UserRole.MANUFACTURER: frozenset({
        Permissions.CREATE_DRUG, Permissions.TRANSFER_DRUG, Permissions.GENERATE_QR,
    }),
    UserRole.DISTRIBUTOR: frozenset({Permissions.TRANSFER_DRUG}),
    UserRole.PHARMACY: frozenset({Permissions.SELL_DRUG}),
    UserRole.CUSTOMER: frozenset({Permissions.SCAN_QR}),
}


def can_perform_action(role: Union[UserRole, str], action: str) -> bool:
    """Check the static role table for an action"""
    try:
        role = UserRole(role)
    except ValueError:
        return False
    return action in ROLE_PERMISSIONS.get(role, frozenset())


def has_role(actual: Union[UserRole, str], required: Union[UserRole, str]) -> bool:
    """Exact role match; admin satisfies every role"""
    return actual == required or actual == UserRole.ADMIN

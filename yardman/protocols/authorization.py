"""
Authorization Protocol — explicit admin capability.

Instead of asking "is the current user an admin?" deep inside each
operation, the caller obtains an AdminCapability once (from an
AdminDirectory) and passes it into the engine's entry points. The engine
only checks the object it was handed.

Usage:
    from yardman.adapters import get_admin_directory

    capability = get_admin_directory().capability_for(str(request.user.pk))
    yard.approve(req.pk, [rack.pk], 100, "", capability)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable


class AdminScope(str, Enum):
    """Actions an admin capability may grant."""

    APPROVE = "approve"
    REJECT = "reject"
    ADJUST_OCCUPANCY = "adjust_occupancy"


ALL_SCOPES = frozenset(AdminScope)


@dataclass(frozen=True)
class AdminCapability:
    """Proof that ``actor_id`` may perform the actions in ``scopes``."""

    actor_id: str
    scopes: frozenset[AdminScope] = ALL_SCOPES

    def permits(self, scope: AdminScope) -> bool:
        return scope in self.scopes


@runtime_checkable
class AdminDirectory(Protocol):
    """
    Issues capabilities.

    Implementations:
        - StaffAdminDirectory: Django users with is_staff
        - AllowlistAdminDirectory: ids listed in YARDMAN['ADMIN_ALLOWLIST']
    """

    def capability_for(self, actor_id: str) -> AdminCapability | None:
        """
        Return a capability for the actor, or None if not an admin.

        Args:
            actor_id: Identifier of the acting user

        Returns:
            AdminCapability or None
        """
        ...

"""
Admin directories issue AdminCapability objects.

Settings:
    YARDMAN = {
        "ADMIN_DIRECTORY": "yardman.adapters.admins.StaffAdminDirectory",
    }
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model

from yardman.conf import yardman_settings
from yardman.protocols.authorization import AdminCapability

logger = logging.getLogger(__name__)


class StaffAdminDirectory:
    """Active Django users flagged ``is_staff`` are admins."""

    def capability_for(self, actor_id: str) -> AdminCapability | None:
        User = get_user_model()
        try:
            is_admin = User.objects.filter(pk=actor_id, is_active=True, is_staff=True).exists()
        except (ValueError, TypeError):
            # Not a valid primary key for the user model
            is_admin = False
        if not is_admin:
            logger.info("yard.admin.denied", extra={"actor_id": actor_id})
            return None
        return AdminCapability(actor_id=str(actor_id))


class AllowlistAdminDirectory:
    """
    Admins are the ids listed in YARDMAN['ADMIN_ALLOWLIST'].

    Handy for service accounts and for deployments without staff users.
    """

    def __init__(self, allowlist: list[str] | None = None):
        self._allowlist = allowlist

    def capability_for(self, actor_id: str) -> AdminCapability | None:
        allowlist = self._allowlist
        if allowlist is None:
            allowlist = yardman_settings.ADMIN_ALLOWLIST
        if str(actor_id) not in {str(a) for a in allowlist}:
            logger.info("yard.admin.denied", extra={"actor_id": actor_id})
            return None
        return AdminCapability(actor_id=str(actor_id))

"""
Yardman configuration.

Usage in settings.py:
    YARDMAN = {
        "ADMIN_DIRECTORY": "yardman.adapters.admins.StaffAdminDirectory",
        "DELIVERY_CHANNEL": "yardman.adapters.fanout.FanoutChannel",
        "NOTIFICATION_CHANNELS": {"request_rejected": ["email", "slack"]},
        "NOTIFY_BATCH_SIZE": 50,
        "NOTIFY_MAX_ATTEMPTS": 3,
    }

SQLite deployments must open transactions in IMMEDIATE mode. select_for_update()
is a no-op there, so the write lock taken at BEGIN is what keeps two
approvals of one request from interleaving:

    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            ...
            "OPTIONS": {"transaction_mode": "IMMEDIATE"},
        },
    }
"""

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


@dataclass
class YardmanSettings:
    """Yardman configuration settings."""

    # Issues AdminCapability objects (dotted path)
    ADMIN_DIRECTORY: str = "yardman.adapters.admins.StaffAdminDirectory"

    # Used by the allowlist directory
    ADMIN_ALLOWLIST: list[str] = field(default_factory=list)

    # Delivery channel used by the notification worker (dotted path).
    # FanoutChannel sends each notice to the routes its payload names.
    DELIVERY_CHANNEL: str = "yardman.adapters.fanout.FanoutChannel"

    # Routes per notification type, e.g. {"request_approved": ["email", "slack"]}.
    # Types not listed go out by e-mail only.
    NOTIFICATION_CHANNELS: dict[str, list[str]] = field(default_factory=dict)

    # Outbox drain
    NOTIFY_BATCH_SIZE: int = 50
    NOTIFY_MAX_ATTEMPTS: int = 3
    DISPATCH_TIMEOUT_SECONDS: float = 10.0

    # A claimed entry is released if its worker dies before reporting back
    CLAIM_LEASE_SECONDS: int = 300

    # Free-text validation
    REJECTION_REASON_MIN_LENGTH: int = 10
    ADJUSTMENT_REASON_MIN_LENGTH: int = 10

    # Default deadline for approve/reject (None = no deadline)
    TRANSITION_TIMEOUT_SECONDS: float | None = None

    # Channels
    SLACK_WEBHOOK_URL: str = ""
    NOTIFICATION_FROM_EMAIL: str = "noreply@yardman.local"


def get_yardman_settings() -> YardmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "YARDMAN", {})
    return YardmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in YardmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_yardman_settings(), name)


yardman_settings = _LazySettings()

"""
Backend loading for the admin directory and the delivery channel.

Usage:
    from yardman.adapters import get_admin_directory, get_delivery_channel

    capability = get_admin_directory().capability_for(actor_id)
    channel = get_delivery_channel()

Settings:
    YARDMAN = {
        "ADMIN_DIRECTORY": "yardman.adapters.admins.StaffAdminDirectory",
        "DELIVERY_CHANNEL": "yardman.adapters.email.EmailChannel",
    }
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from yardman.conf import yardman_settings
from yardman.protocols.authorization import AdminDirectory
from yardman.protocols.delivery import DeliveryChannel

logger = logging.getLogger(__name__)


# Cached instances
_lock = threading.Lock()
_admin_directory: AdminDirectory | None = None
_delivery_channel: DeliveryChannel | None = None


def _load(setting: str, protocol: type) -> Any:
    path = getattr(yardman_settings, setting)
    if not path:
        raise ImproperlyConfigured(f"YARDMAN['{setting}'] must be configured.")
    try:
        backend = import_string(path)()
    except ImportError as e:
        raise ImproperlyConfigured(f"Failed to import {setting} '{path}': {e}") from e
    if not isinstance(backend, protocol):
        raise ImproperlyConfigured(f"{path} does not implement {protocol.__name__}")
    logger.debug("Loaded %s: %s", setting, path)
    return backend


def get_admin_directory() -> AdminDirectory:
    """
    Return the configured admin directory.

    Raises:
        ImproperlyConfigured: If ADMIN_DIRECTORY is missing or cannot be imported
    """
    global _admin_directory

    if _admin_directory is None:
        with _lock:
            if _admin_directory is None:  # double-checked
                _admin_directory = _load("ADMIN_DIRECTORY", AdminDirectory)
    return _admin_directory


def get_delivery_channel() -> DeliveryChannel:
    """
    Return the configured delivery channel.

    Raises:
        ImproperlyConfigured: If DELIVERY_CHANNEL is missing or cannot be imported
    """
    global _delivery_channel

    if _delivery_channel is None:
        with _lock:
            if _delivery_channel is None:
                _delivery_channel = _load("DELIVERY_CHANNEL", DeliveryChannel)
    return _delivery_channel


def reset_backends() -> None:
    """Reset the cached backends. Useful for testing."""
    global _admin_directory, _delivery_channel
    _admin_directory = None
    _delivery_channel = None

"""
Yardman Adapters.

Implementations of protocols for external systems.
"""

from yardman.adapters.backends import (
    get_admin_directory,
    get_delivery_channel,
    reset_backends,
)

__all__ = [
    "get_admin_directory",
    "get_delivery_channel",
    "reset_backends",
]

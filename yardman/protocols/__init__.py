"""
Yardman Protocols.

Defines interfaces for external system integration.
"""

from yardman.protocols.authorization import (
    ALL_SCOPES,
    AdminCapability,
    AdminDirectory,
    AdminScope,
)
from yardman.protocols.delivery import DeliveryChannel

__all__ = [
    "ALL_SCOPES",
    "AdminCapability",
    "AdminDirectory",
    "AdminScope",
    "DeliveryChannel",
]

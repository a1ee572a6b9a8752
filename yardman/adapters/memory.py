"""
Memory delivery channel.

MemoryChannel records notices instead of sending them. Use it for local
development and tests:

    YARDMAN = {
        "DELIVERY_CHANNEL": "yardman.adapters.memory.MemoryChannel",
    }

WARNING: Do NOT use in production. Nothing leaves the process.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from yardman.exceptions import DeliveryError

if TYPE_CHECKING:
    from yardman.notices import Notice


class MemoryChannel:
    """Records delivered notices; can be told to fail."""

    def __init__(self):
        self.sent: list[Notice] = []
        self.fail_with: DeliveryError | None = None
        self.fail_for: set[str] = set()

    def send(self, notice: Notice, timeout: float) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        if notice.recipient in self.fail_for:
            raise DeliveryError("REJECTED", channel="memory", recipient=notice.recipient)
        self.sent.append(notice)

    def reset(self) -> None:
        """Clear sent notices and failure switches."""
        self.sent.clear()
        self.fail_with = None
        self.fail_for.clear()

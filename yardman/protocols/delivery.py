"""
Delivery Channel Protocol.

The notification worker hands each rendered Notice to a channel. What the
channel does with it (SMTP, Slack webhook, ...) is its own business; the
worker only needs to know whether it succeeded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from yardman.notices import Notice


@runtime_checkable
class DeliveryChannel(Protocol):
    """
    Interface for notification delivery.

    Implementations:
        - EmailChannel: Django mail framework
        - SlackWebhookChannel: Slack incoming webhook over httpx
        - FanoutChannel: the named channels a notice asks for
        - MemoryChannel: records notices (development and tests)
    """

    def send(self, notice: Notice, timeout: float) -> None:
        """
        Deliver one notice.

        Args:
            notice: Rendered notification
            timeout: Seconds the transport may block

        Raises:
            DeliveryError: On any failure (the worker retries later)
        """
        ...

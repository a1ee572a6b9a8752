"""
Fan-out delivery channel.

Routes each notice to the channels its payload names (``notice.channels``):

    YARDMAN = {
        "DELIVERY_CHANNEL": "yardman.adapters.fanout.FanoutChannel",
        "NOTIFICATION_CHANNELS": {"request_approved": ["email", "slack"]},
    }
"""

from __future__ import annotations

import logging
from time import monotonic
from typing import TYPE_CHECKING

from yardman.exceptions import DeliveryError
from yardman.notices import EMAIL, SLACK

if TYPE_CHECKING:
    from yardman.notices import Notice
    from yardman.protocols.delivery import DeliveryChannel

logger = logging.getLogger(__name__)


class FanoutChannel:
    """
    Send through the named channels a notice asks for.

    Every named channel must succeed. A failure after a partial send means
    the whole notice is retried, so receivers may see a duplicate.

    The timeout covers the whole notice: each channel gets an equal share
    of what is left when its turn comes.
    """

    def __init__(self, **channels: DeliveryChannel):
        if not channels:
            from yardman.adapters.email import EmailChannel
            from yardman.adapters.slack import SlackWebhookChannel
            channels = {EMAIL: EmailChannel(), SLACK: SlackWebhookChannel()}
        self.channels = channels

    def _targets(self, notice: Notice) -> list[tuple[str, DeliveryChannel]]:
        if not notice.channels:
            raise DeliveryError("REJECTED", channel="fanout", detail="notice names no channels")
        targets = []
        for name in dict.fromkeys(notice.channels):
            channel = self.channels.get(name)
            if channel is None:
                raise DeliveryError("NOT_CONFIGURED", channel=name)
            targets.append((name, channel))
        return targets

    def send(self, notice: Notice, timeout: float) -> None:
        targets = self._targets(notice)
        deadline = monotonic() + timeout

        for index, (name, channel) in enumerate(targets):
            remaining = deadline - monotonic()
            if remaining <= 0:
                raise DeliveryError("TIMEOUT", channel=name, timeout=timeout)
            channel.send(notice, remaining / (len(targets) - index))
            logger.debug("yard.fanout.sent", extra={"channel": name, "type": notice.type})

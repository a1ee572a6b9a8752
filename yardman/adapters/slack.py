"""
Slack delivery channel — incoming webhook over httpx.

Settings:
    YARDMAN = {
        "DELIVERY_CHANNEL": "yardman.adapters.slack.SlackWebhookChannel",
        "SLACK_WEBHOOK_URL": "https://hooks.slack.com/services/...",
    }
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from yardman.conf import yardman_settings
from yardman.exceptions import DeliveryError
from yardman.models.enums import NotificationType

if TYPE_CHECKING:
    from yardman.notices import Notice

logger = logging.getLogger(__name__)

_COLORS = {
    NotificationType.REQUEST_APPROVED.value: "#36a64f",
    NotificationType.REQUEST_REJECTED.value: "#ff0000",
}


class SlackWebhookChannel:
    """
    Post the chat text of a notice to a Slack incoming webhook.

    ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(self, webhook_url: str | None = None, transport: httpx.BaseTransport | None = None):
        self.webhook_url = webhook_url
        self.transport = transport

    def send(self, notice: Notice, timeout: float) -> None:
        url = self.webhook_url or yardman_settings.SLACK_WEBHOOK_URL
        if not url:
            raise DeliveryError("NOT_CONFIGURED", channel="slack")

        body = {
            "attachments": [{
                "color": _COLORS.get(notice.type, "#439fe0"),
                "text": notice.chat_text,
                "footer": "Yardman notification",
            }],
        }
        try:
            with httpx.Client(timeout=timeout, transport=self.transport) as client:
                response = client.post(url, json=body)
        except httpx.TimeoutException as exc:
            raise DeliveryError("TIMEOUT", channel="slack", detail=str(exc)) from exc
        except httpx.HTTPError as exc:
            raise DeliveryError("TRANSPORT", channel="slack", detail=str(exc)) from exc

        if response.is_error:
            raise DeliveryError(
                "REJECTED",
                channel="slack",
                status_code=response.status_code,
                detail=response.text[:200],
            )
        logger.debug("yard.slack.sent", extra={"type": notice.type})

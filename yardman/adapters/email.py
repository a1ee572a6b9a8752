"""
E-mail delivery channel on top of Django's mail framework.

Works with whatever EMAIL_BACKEND the project configures (SMTP in
production, locmem in tests). The per-notice timeout is passed to the
backend connection.
"""

from __future__ import annotations

import logging
import smtplib
from typing import TYPE_CHECKING

from django.core.mail import EmailMultiAlternatives, get_connection

from yardman.conf import yardman_settings
from yardman.exceptions import DeliveryError

if TYPE_CHECKING:
    from yardman.notices import Notice

logger = logging.getLogger(__name__)


class EmailChannel:
    """Send the text + HTML body of a notice to its recipient."""

    def __init__(self, from_email: str | None = None):
        self.from_email = from_email

    def send(self, notice: Notice, timeout: float) -> None:
        if not notice.recipient:
            raise DeliveryError("REJECTED", channel="email", detail="notice has no recipient")

        from_email = self.from_email or yardman_settings.NOTIFICATION_FROM_EMAIL
        try:
            connection = get_connection(timeout=timeout)
            message = EmailMultiAlternatives(
                subject=notice.subject,
                body=notice.text,
                from_email=from_email,
                to=[notice.recipient],
                connection=connection,
            )
            message.attach_alternative(notice.html, "text/html")
            message.send(fail_silently=False)
        except TimeoutError as exc:
            raise DeliveryError("TIMEOUT", channel="email", detail=str(exc)) from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError("TRANSPORT", channel="email", detail=str(exc)) from exc

        logger.debug("yard.email.sent", extra={"to": notice.recipient, "type": notice.type})

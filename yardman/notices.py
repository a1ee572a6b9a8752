"""
Notification payloads: closed, versioned types for outbox entries.

The transition engine builds a payload, stores ``payload.to_json()`` in the
outbox with ``(type, schema_version)``; the drain worker turns the row back
into the same type with parse_payload() and renders it with render().

Each payload names the channels it goes out on (``channels``, e.g.
``("email", "slack")``); the engine fills them from
YARDMAN["NOTIFICATION_CHANNELS"] and FanoutChannel delivers to those only.

Adding a notification means adding a payload class here and a branch in
render(); unknown (type, version) pairs fail loudly as UNSUPPORTED_PAYLOAD.
"""

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, Union

from django.utils.html import escape

from yardman.conf import yardman_settings
from yardman.exceptions import DeliveryError
from yardman.models.enums import NotificationType

# Delivery routes a payload can name
EMAIL = "email"
SLACK = "slack"
DEFAULT_CHANNELS: tuple[str, ...] = (EMAIL,)


def channels_for(entry_type: str) -> tuple[str, ...]:
    """Routes for a new notification of this type (YARDMAN['NOTIFICATION_CHANNELS'])."""
    entry_type = getattr(entry_type, "value", entry_type)
    routes = yardman_settings.NOTIFICATION_CHANNELS.get(entry_type)
    return tuple(routes) if routes else DEFAULT_CHANNELS


def _channels_from_json(data: dict[str, Any]) -> tuple[str, ...]:
    # Entries written before routing existed went to e-mail only
    channels = data.get("channels")
    if channels is None:
        return DEFAULT_CHANNELS
    if isinstance(channels, str) or not all(isinstance(name, str) for name in channels):
        raise TypeError(f"channels must be a list of names, got {channels!r}")
    return tuple(channels)


@dataclass(frozen=True)
class RequestApprovedPayload:
    TYPE: ClassVar[str] = NotificationType.REQUEST_APPROVED.value
    VERSION: ClassVar[int] = 1

    request_id: int
    reference: str
    company_name: str
    customer_email: str
    location_names: tuple[str, ...]
    quantity: int
    notes: str = ""
    channels: tuple[str, ...] = DEFAULT_CHANNELS

    def to_json(self) -> dict[str, Any]:
        data = asdict(self)
        data["location_names"] = list(self.location_names)
        data["channels"] = list(self.channels)
        return data

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "RequestApprovedPayload":
        try:
            return cls(
                request_id=data["request_id"],
                reference=data["reference"],
                company_name=data.get("company_name", ""),
                customer_email=data.get("customer_email", ""),
                location_names=tuple(data["location_names"]),
                quantity=int(data["quantity"]),
                notes=data.get("notes") or "",
                channels=_channels_from_json(data),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DeliveryError("INVALID_PAYLOAD", type=cls.TYPE, detail=str(exc)) from exc


@dataclass(frozen=True)
class RequestRejectedPayload:
    TYPE: ClassVar[str] = NotificationType.REQUEST_REJECTED.value
    VERSION: ClassVar[int] = 1

    request_id: int
    reference: str
    company_name: str
    customer_email: str
    reason: str
    notes: str = ""
    channels: tuple[str, ...] = DEFAULT_CHANNELS

    def to_json(self) -> dict[str, Any]:
        data = asdict(self)
        data["channels"] = list(self.channels)
        return data

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "RequestRejectedPayload":
        try:
            return cls(
                request_id=data["request_id"],
                reference=data["reference"],
                company_name=data.get("company_name", ""),
                customer_email=data.get("customer_email", ""),
                reason=data["reason"],
                notes=data.get("notes") or "",
                channels=_channels_from_json(data),
            )
        except (KeyError, TypeError) as exc:
            raise DeliveryError("INVALID_PAYLOAD", type=cls.TYPE, detail=str(exc)) from exc


NoticePayload = Union[RequestApprovedPayload, RequestRejectedPayload]

_REGISTRY: dict[tuple[str, int], type] = {
    (cls.TYPE, cls.VERSION): cls
    for cls in (RequestApprovedPayload, RequestRejectedPayload)
}


def parse_payload(entry_type: str, version: int, data: Any) -> NoticePayload:
    """Rebuild the typed payload of an outbox row."""
    entry_type = getattr(entry_type, "value", entry_type)
    payload_cls = _REGISTRY.get((entry_type, version))
    if payload_cls is None:
        raise DeliveryError("UNSUPPORTED_PAYLOAD", type=entry_type, version=version)
    if not isinstance(data, dict):
        raise DeliveryError("INVALID_PAYLOAD", type=entry_type, detail="payload is not an object")
    return payload_cls.from_json(data)


@dataclass(frozen=True)
class Notice:
    """A rendered notification, ready for any channel."""

    type: str
    recipient: str
    subject: str
    text: str
    html: str
    chat_text: str
    channels: tuple[str, ...] = DEFAULT_CHANNELS


def render(payload: NoticePayload) -> Notice:
    """Render a payload into e-mail and chat bodies."""
    if isinstance(payload, RequestApprovedPayload):
        locations = ", ".join(payload.location_names) or "N/A"
        lines = [
            f"Your storage request {payload.reference} has been approved.",
            "",
            f"Company: {payload.company_name}",
            f"Reference: {payload.reference}",
            f"Assigned locations: {locations}",
            f"Quantity: {payload.quantity}",
        ]
        if payload.notes:
            lines.append(f"Notes: {payload.notes}")
        lines += ["", "Please log in to schedule your first delivery."]
        return Notice(
            type=payload.TYPE,
            recipient=payload.customer_email,
            subject=f"Storage Request Approved - {payload.reference}",
            text="\n".join(lines),
            html=_html("Storage Request Approved", lines),
            chat_text=(
                f":white_check_mark: *Storage Request Approved*\n"
                f"*Company:* {payload.company_name}\n"
                f"*Reference:* {payload.reference}\n"
                f"*Locations:* {locations}\n"
                f"*Quantity:* {payload.quantity}\n"
                f"*Customer:* {payload.customer_email}"
            ),
            channels=payload.channels,
        )

    if isinstance(payload, RequestRejectedPayload):
        lines = [
            f"We have reviewed your storage request {payload.reference}.",
            "",
            f"Company: {payload.company_name}",
            f"Reference: {payload.reference}",
            "Status: Unable to approve at this time",
            f"Reason: {payload.reason}",
        ]
        if payload.notes:
            lines.append(f"Additional notes: {payload.notes}")
        lines += ["", "Please contact our team to discuss alternatives."]
        return Notice(
            type=payload.TYPE,
            recipient=payload.customer_email,
            subject=f"Storage Request Update - {payload.reference}",
            text="\n".join(lines),
            html=_html("Storage Request Update", lines),
            chat_text=(
                f":x: *Storage Request Rejected*\n"
                f"*Company:* {payload.company_name}\n"
                f"*Reference:* {payload.reference}\n"
                f"*Reason:* {payload.reason}\n"
                f"*Customer:* {payload.customer_email}"
            ),
            channels=payload.channels,
        )

    raise DeliveryError("UNSUPPORTED_PAYLOAD", type=type(payload).__name__)


def _html(title: str, lines: list[str]) -> str:
    body = "".join(f"<p>{escape(line)}</p>" for line in lines if line)
    return f"<h2>{escape(title)}</h2>{body}"

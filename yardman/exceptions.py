"""
Exceptions for Yardman.

All errors carry a structured code for programmatic handling.
"""

from typing import Any


class BaseError(Exception):
    """
    Structured exception base.

    Subclasses declare ``_default_messages`` mapping codes to human text.
    Extra keyword arguments become ``data`` and are available to callers
    (and to the UI) without parsing the message.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.data:
            details = ', '.join(f'{k}={v!r}' for k, v in self.data.items())
            return f"[{self.code}] {self.message} ({details})"
        return f"[{self.code}] {self.message}"

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': self.data,
        }


class TransitionError(BaseError):
    """
    Structured exception for approve / reject / adjust operations.

    Usage:
        try:
            yard.approve(request.pk, [rack_a.pk], 100, '', capability)
        except TransitionError as e:
            if e.code == 'CAPACITY_EXCEEDED':
                print(f"Only {e.available} of {e.required} fit")

    CAPACITY_EXCEEDED and INVALID_STATE are expected, user-facing outcomes.
    TIMEOUT and UNEXPECTED are operational failures; the caller may retry.
    """

    _default_messages = {
        'NOT_FOUND': 'Storage request not found',
        'INVALID_STATE': 'Request is not in a state that allows this operation',
        'INVALID_REFERENCE': 'One or more location ids do not exist',
        'CAPACITY_EXCEEDED': 'Selected locations do not have enough free capacity',
        'INVALID_ARGUMENT': 'Invalid argument',
        'PERMISSION_DENIED': 'Admin privileges required',
        'TIMEOUT': 'Operation timed out; no changes were applied',
        'UNEXPECTED': 'Unexpected storage failure; no changes were applied',
    }

    OPERATIONAL_CODES = frozenset({'TIMEOUT', 'UNEXPECTED'})

    @property
    def is_operational(self) -> bool:
        """True for failures that are not the caller's fault (retryable)."""
        return self.code in self.OPERATIONAL_CODES

    @property
    def required(self) -> int:
        """Shortcut for data['required']."""
        return self.data.get('required', 0)

    @property
    def available(self) -> int:
        """Shortcut for data['available']."""
        return self.data.get('available', 0)


class DeliveryError(BaseError):
    """Raised by delivery channels (and payload parsing) when a notice cannot be sent."""

    _default_messages = {
        'NOT_CONFIGURED': 'Delivery channel is not configured',
        'TRANSPORT': 'Delivery transport failed',
        'TIMEOUT': 'Delivery timed out',
        'REJECTED': 'Delivery was rejected by the remote service',
        'UNSUPPORTED_PAYLOAD': 'Notification payload type or version is not supported',
        'INVALID_PAYLOAD': 'Notification payload is malformed',
    }

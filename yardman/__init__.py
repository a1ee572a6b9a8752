"""
Django Yardman — Storage yard engine.

Approves storage requests against finite rack capacity, derives the
workflow state of each request, and delivers notifications reliably.

Usage:
    from yardman import yard, TransitionError

    yard.approve(req.pk, [rack.pk], 100, "", capability)
    yard.state_of(req.pk)
    yard.drain()
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'yard':
        from yardman.service import Yard
        return Yard
    elif name == 'TransitionError':
        from yardman.exceptions import TransitionError
        return TransitionError
    elif name == 'DeliveryError':
        from yardman.exceptions import DeliveryError
        return DeliveryError
    elif name == 'AdminCapability':
        from yardman.protocols.authorization import AdminCapability
        return AdminCapability
    elif name == 'Location':
        from yardman.models.location import Location
        return Location
    elif name == 'StorageRequest':
        from yardman.models.request import StorageRequest
        return StorageRequest
    elif name == 'Load':
        from yardman.models.load import Load
        return Load
    elif name == 'OutboxEntry':
        from yardman.models.outbox import OutboxEntry
        return OutboxEntry
    elif name == 'WorkflowState':
        from yardman.workflow import WorkflowState
        return WorkflowState
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'yard',
    'TransitionError',
    'DeliveryError',
    'AdminCapability',
    'Location',
    'StorageRequest',
    'Load',
    'OutboxEntry',
    'WorkflowState',
]

__version__ = '0.1.0'

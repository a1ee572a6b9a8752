"""
Yard services — modular organization of yard operations.

Re-exports the service classes that yardman.service.Yard combines:
    from yardman.services import Transitions, Adjustments, YardQueries, Notifications
"""

from yardman.services.adjustments import AdjustmentResult, Adjustments
from yardman.services.notifications import DrainSummary, Notifications
from yardman.services.queries import CapacitySummary, LocationCapacity, YardQueries
from yardman.services.transitions import ApprovalResult, RejectionResult, Transitions

__all__ = [
    'Transitions',
    'Adjustments',
    'YardQueries',
    'Notifications',
    'ApprovalResult',
    'RejectionResult',
    'AdjustmentResult',
    'DrainSummary',
    'CapacitySummary',
    'LocationCapacity',
]

"""
Yard Service — The single public interface for all yard operations.

Usage:
    from yardman import yard, TransitionError

    capability = get_admin_directory().capability_for(str(user.pk))
    yard.approve(req.pk, [rack_a.pk, rack_b.pk], 100, "dock 3", capability)
    yard.state_of(req.pk).label          # "Waiting on Load #1"
    yard.drain()                         # deliver queued notifications
"""

from yardman.services.adjustments import Adjustments
from yardman.services.notifications import Notifications
from yardman.services.queries import YardQueries
from yardman.services.transitions import Transitions
from yardman.snapshot import RequestSnapshot
from yardman.workflow import WorkflowStatus, derive_state, progress, requires_admin_action


class Yard(Transitions, Adjustments, YardQueries, Notifications):
    """
    Single interface for all yard operations.

    IMPORTANT: State-changing methods (approve, reject, adjust_occupancy)
    take an explicit AdminCapability and run in one atomic transaction
    with row locks. drain() never holds a lock while sending.
    """

    # ══════════════════════════════════════════════════════════════
    # TRANSITIONS: approve, reject        (services.transitions)
    # LEDGER: adjust_occupancy            (services.adjustments)
    # QUERIES: snapshot, state_of, capacity, stuck  (services.queries)
    # NOTIFICATIONS: drain                (services.notifications)
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def snapshot(cls, request) -> RequestSnapshot:
        """Alias of build_snapshot()."""
        return cls.build_snapshot(request)

    # ══════════════════════════════════════════════════════════════
    # WORKFLOW (pure, no I/O)
    # ══════════════════════════════════════════════════════════════

    @staticmethod
    def derive_state(snapshot: RequestSnapshot) -> WorkflowStatus:
        return derive_state(snapshot)

    @staticmethod
    def progress(snapshot: RequestSnapshot) -> int:
        return progress(snapshot)

    @staticmethod
    def requires_admin_action(snapshot: RequestSnapshot) -> bool:
        return requires_admin_action(snapshot)

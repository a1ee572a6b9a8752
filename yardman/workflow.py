"""
Workflow state derivation (pure, no I/O).

Reduces a RequestSnapshot to exactly one WorkflowState plus a next-action
hint. Used by operator dashboards and customer views alike; the result is
never stored, so it cannot drift from the rows it is computed from.

State machine (first match wins):

    1. REJECTED               request.status == rejected
    2. COMPLETED              request.status == completed
    3. PENDING_APPROVAL       request.status == pending
    4. AWAITING_INBOUND_LOAD  first open inbound load (or none yet)
    5. PROCESSING_MANIFESTS   inbound done, some manifest not extracted
    6. IN_STORAGE             inbound done, manifests done, goods on hand
    7. PICKUP_IN_PROGRESS     first open outbound load
       AWAITING_PICKUP        outbound loads closed, goods remain
       COMPLETED              outbound loads closed, nothing remains
    8. fallback               anything else; flagged and logged

Cancelled loads are ignored by rules 4-7.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from yardman.models.enums import LoadStatus, RequestStatus
from yardman.snapshot import LoadSnapshot, RequestSnapshot

logger = logging.getLogger('yardman')


class WorkflowState(str, Enum):
    """The eight lifecycle states shown to operators and customers."""

    PENDING_APPROVAL = "pending_approval"
    REJECTED = "rejected"
    COMPLETED = "completed"
    AWAITING_INBOUND_LOAD = "awaiting_inbound_load"
    PROCESSING_MANIFESTS = "processing_manifests"
    IN_STORAGE = "in_storage"
    PICKUP_IN_PROGRESS = "pickup_in_progress"
    AWAITING_PICKUP = "awaiting_pickup"


class BadgeTone(str, Enum):
    PENDING = "pending"
    INFO = "info"
    SUCCESS = "success"
    DANGER = "danger"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class WorkflowStatus:
    """Result of derive_state()."""

    state: WorkflowState
    label: str
    next_action: str | None
    tone: BadgeTone
    load_number: int | None = None
    is_fallback: bool = False


def derive_state(snapshot: RequestSnapshot) -> WorkflowStatus:
    """
    Compute the workflow state of one request.

    Never raises: malformed input degrades to the flagged fallback so a
    rendering path is never broken by bad data.
    """
    try:
        return _derive(snapshot)
    except (AttributeError, TypeError, ValueError) as exc:
        return _fallback(snapshot, f"malformed snapshot: {exc}")


def progress(snapshot: RequestSnapshot) -> int:
    """
    Progress percentage (0-100) for progress bars.

    pending 10, approved 20, inbound 20->60, in storage 70, outbound 70->100.
    """
    if snapshot.status == RequestStatus.COMPLETED:
        return 100
    if snapshot.status == RequestStatus.PENDING:
        return 10
    if snapshot.status != RequestStatus.APPROVED:
        return 0

    inbound = _active(snapshot.inbound_loads)
    if not inbound:
        return 20

    done = sum(1 for load in inbound if load.status == LoadStatus.COMPLETED)
    if snapshot.inventory.total_quantity <= 0:
        return round(20 + done / len(inbound) * 40)

    outbound = _active(snapshot.outbound_loads)
    if not outbound:
        return 70

    done = sum(1 for load in outbound if load.status == LoadStatus.COMPLETED)
    return round(70 + done / len(outbound) * 30)


def requires_admin_action(snapshot: RequestSnapshot) -> bool:
    """Highlight in the admin dashboard: decision due, manifests due, or anomaly."""
    status = derive_state(snapshot)
    return status.is_fallback or status.state in (
        WorkflowState.PENDING_APPROVAL,
        WorkflowState.PROCESSING_MANIFESTS,
    )


# ══════════════════════════════════════════════════════════════
# INTERNALS
# ══════════════════════════════════════════════════════════════


def _derive(snapshot: RequestSnapshot) -> WorkflowStatus:
    status = snapshot.status

    if status == RequestStatus.REJECTED:
        return WorkflowStatus(WorkflowState.REJECTED, "Rejected", None, BadgeTone.DANGER)

    if status == RequestStatus.COMPLETED:
        return WorkflowStatus(WorkflowState.COMPLETED, "Completed", None, BadgeTone.SUCCESS)

    if status == RequestStatus.PENDING:
        return WorkflowStatus(
            WorkflowState.PENDING_APPROVAL,
            "Pending Admin Approval",
            "Admin must approve or reject this request",
            BadgeTone.PENDING,
        )

    if status != RequestStatus.APPROVED:
        return _fallback(snapshot, f"unexpected request status {status!r}")

    for direction, loads in (("inbound", snapshot.inbound_loads), ("outbound", snapshot.outbound_loads)):
        problem = _sequence_problem(loads)
        if problem:
            return _fallback(snapshot, f"{direction} loads {problem}")

    # Rule 4: waiting on an inbound load
    inbound = _active(snapshot.inbound_loads)
    if not inbound:
        number = max((load.sequence_number for load in snapshot.inbound_loads), default=0) + 1
        return WorkflowStatus(
            WorkflowState.AWAITING_INBOUND_LOAD,
            f"Waiting on Load #{number}",
            f"Customer must schedule delivery of load #{number}",
            BadgeTone.INFO,
            load_number=number,
        )

    next_inbound = _first_open(inbound)
    if next_inbound is not None:
        return _waiting_on(next_inbound, WorkflowState.AWAITING_INBOUND_LOAD, "Load")

    # Rule 5: all inbound loads arrived
    if not all(load.manifests_processed for load in inbound):
        return WorkflowStatus(
            WorkflowState.PROCESSING_MANIFESTS,
            "Processing Manifests",
            "Admin must upload and process manifest documents",
            BadgeTone.INFO,
        )

    on_hand = snapshot.inventory.total_quantity
    outbound = _active(snapshot.outbound_loads)

    # Rule 6
    if not outbound:
        if on_hand > 0:
            return WorkflowStatus(
                WorkflowState.IN_STORAGE,
                "In Storage",
                "Inventory stored. Awaiting customer pickup request.",
                BadgeTone.SUCCESS,
            )
        return _fallback(snapshot, "inbound complete but no inventory on hand")

    # Rule 7: outbound mirror
    next_outbound = _first_open(outbound)
    if next_outbound is not None:
        return _waiting_on(next_outbound, WorkflowState.PICKUP_IN_PROGRESS, "Pickup")

    if on_hand <= 0:
        return WorkflowStatus(
            WorkflowState.COMPLETED,
            "All Goods Returned",
            "Admin may close the request",
            BadgeTone.SUCCESS,
        )

    return WorkflowStatus(
        WorkflowState.AWAITING_PICKUP,
        "Awaiting Pickup",
        f"{on_hand} units remain in storage. Customer must schedule the next pickup.",
        BadgeTone.INFO,
    )


def _active(loads) -> list[LoadSnapshot]:
    return [load for load in loads if not load.is_cancelled]


def _first_open(loads: list[LoadSnapshot]) -> LoadSnapshot | None:
    return next((load for load in loads if load.is_open), None)


def _sequence_problem(loads) -> str | None:
    """Loads must come sorted by sequence number, without duplicates."""
    numbers = [load.sequence_number for load in loads]
    if len(set(numbers)) != len(numbers):
        return "have duplicate sequence numbers"
    if numbers != sorted(numbers):
        return "are not sorted by sequence number"
    return None


def _waiting_on(load: LoadSnapshot, state: WorkflowState, noun: str) -> WorkflowStatus:
    number = load.sequence_number
    if load.status == LoadStatus.IN_TRANSIT:
        next_action = f"{noun} #{number} is en route"
    elif load.status == LoadStatus.APPROVED:
        when = load.scheduled_start.date().isoformat() if load.scheduled_start else "TBD"
        next_action = f"{noun} #{number} scheduled for {when}"
    else:
        next_action = f"{noun} #{number} not yet scheduled"

    label = f"Waiting on Load #{number}" if noun == "Load" else f"Waiting on Pickup #{number}"
    return WorkflowStatus(state, label, next_action, BadgeTone.INFO, load_number=number)


def _fallback(snapshot, reason: str) -> WorkflowStatus:
    logger.warning(
        "yard.workflow.fallback",
        extra={
            "request_id": getattr(snapshot, "id", None),
            "reference": getattr(snapshot, "reference", None),
            "status": str(getattr(snapshot, "status", None)),
            "reason": reason,
        },
    )
    return WorkflowStatus(
        WorkflowState.IN_STORAGE,
        "In Storage",
        None,
        BadgeTone.NEUTRAL,
        is_fallback=True,
    )

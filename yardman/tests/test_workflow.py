"""
Tests for workflow state derivation (pure, no database).
"""

from datetime import datetime, timezone

import pytest

from yardman.models.enums import LoadStatus, RequestStatus
from yardman.snapshot import (
    NO_EXTRACTION,
    DocumentSnapshot,
    InventorySummary,
    LoadSnapshot,
    ManifestExtraction,
    RequestSnapshot,
    extraction_from_json,
)
from yardman.workflow import (
    BadgeTone,
    WorkflowState,
    derive_state,
    progress,
    requires_admin_action,
)


PROCESSED = DocumentSnapshot(id=1, extraction=ManifestExtraction(version=1, items=({'sku': 'P-1'},)))
UNPROCESSED = DocumentSnapshot(id=2, extraction=NO_EXTRACTION)


def load(n, status, documents=(PROCESSED,), scheduled_start=None):
    return LoadSnapshot(
        id=n,
        sequence_number=n,
        status=status,
        scheduled_start=scheduled_start,
        documents=tuple(documents),
    )


def snapshot(status=RequestStatus.APPROVED, inbound=(), outbound=(), on_hand=0):
    return RequestSnapshot(
        id=1,
        reference='SR-00001',
        status=status,
        inbound_loads=tuple(inbound),
        outbound_loads=tuple(outbound),
        inventory=InventorySummary(total_quantity=on_hand),
    )


class TestLifecycleStates:
    """Rules 1-3: decided by request status alone."""

    def test_rejected(self):
        status = derive_state(snapshot(RequestStatus.REJECTED))
        assert status.state == WorkflowState.REJECTED
        assert status.tone == BadgeTone.DANGER

    def test_completed(self):
        assert derive_state(snapshot(RequestStatus.COMPLETED)).state == WorkflowState.COMPLETED

    def test_pending(self):
        status = derive_state(snapshot(RequestStatus.PENDING))
        assert status.state == WorkflowState.PENDING_APPROVAL
        assert status.label == 'Pending Admin Approval'

    def test_status_wins_over_loads(self):
        """A rejected request with loads is still rejected."""
        status = derive_state(snapshot(RequestStatus.REJECTED, inbound=[load(1, LoadStatus.IN_TRANSIT)]))
        assert status.state == WorkflowState.REJECTED


class TestInbound:
    """Rules 4-6."""

    def test_no_inbound_loads_waits_on_first(self):
        status = derive_state(snapshot())
        assert status.state == WorkflowState.AWAITING_INBOUND_LOAD
        assert status.load_number == 1
        assert status.label == 'Waiting on Load #1'

    def test_waits_on_first_open_load(self):
        status = derive_state(snapshot(inbound=[
            load(1, LoadStatus.COMPLETED),
            load(2, LoadStatus.IN_TRANSIT),
            load(3, LoadStatus.NEW),
        ]))
        assert status.state == WorkflowState.AWAITING_INBOUND_LOAD
        assert status.load_number == 2
        assert status.next_action == 'Load #2 is en route'

    def test_scheduled_hint_carries_date(self):
        start = datetime(2026, 3, 14, 9, 0, tzinfo=timezone.utc)
        status = derive_state(snapshot(inbound=[load(1, LoadStatus.APPROVED, scheduled_start=start)]))
        assert status.next_action == 'Load #1 scheduled for 2026-03-14'

    def test_unscheduled_hint(self):
        status = derive_state(snapshot(inbound=[load(1, LoadStatus.NEW)]))
        assert status.next_action == 'Load #1 not yet scheduled'

    def test_processing_manifests(self):
        """One completed inbound load whose only document has no extraction."""
        status = derive_state(snapshot(inbound=[load(1, LoadStatus.COMPLETED, documents=[UNPROCESSED])]))
        assert status.state == WorkflowState.PROCESSING_MANIFESTS

    def test_load_without_documents_needs_manifests(self):
        status = derive_state(snapshot(inbound=[load(1, LoadStatus.COMPLETED, documents=[])], on_hand=40))
        assert status.state == WorkflowState.PROCESSING_MANIFESTS

    def test_in_storage(self):
        """Inbound complete, manifest processed, 40 units on hand."""
        status = derive_state(snapshot(inbound=[load(1, LoadStatus.COMPLETED)], on_hand=40))
        assert status.state == WorkflowState.IN_STORAGE
        assert status.is_fallback is False
        assert status.tone == BadgeTone.SUCCESS

    def test_cancelled_loads_are_ignored(self):
        status = derive_state(snapshot(inbound=[
            load(1, LoadStatus.CANCELLED),
            load(2, LoadStatus.COMPLETED),
        ], on_hand=10))
        assert status.state == WorkflowState.IN_STORAGE

    def test_all_inbound_cancelled_waits_on_next_number(self):
        status = derive_state(snapshot(inbound=[
            load(1, LoadStatus.CANCELLED),
            load(2, LoadStatus.CANCELLED),
        ]))
        assert status.state == WorkflowState.AWAITING_INBOUND_LOAD
        assert status.load_number == 3


class TestOutbound:
    """Rule 7: outbound mirror."""

    inbound = [load(1, LoadStatus.COMPLETED)]

    def test_pickup_in_progress(self):
        status = derive_state(snapshot(
            inbound=self.inbound,
            outbound=[load(1, LoadStatus.COMPLETED), load(2, LoadStatus.APPROVED)],
            on_hand=20,
        ))
        assert status.state == WorkflowState.PICKUP_IN_PROGRESS
        assert status.load_number == 2
        assert status.label == 'Waiting on Pickup #2'

    def test_awaiting_pickup_when_goods_remain(self):
        status = derive_state(snapshot(inbound=self.inbound, outbound=[load(1, LoadStatus.COMPLETED)], on_hand=20))
        assert status.state == WorkflowState.AWAITING_PICKUP

    def test_all_goods_returned(self):
        status = derive_state(snapshot(inbound=self.inbound, outbound=[load(1, LoadStatus.COMPLETED)], on_hand=0))
        assert status.state == WorkflowState.COMPLETED
        assert status.label == 'All Goods Returned'


class TestFallback:
    """Rule 8: flagged fallback, never an exception."""

    def test_unsorted_loads(self, caplog):
        """Unsorted input is a caller error; it is flagged, not repaired."""
        status = derive_state(snapshot(inbound=[load(2, LoadStatus.COMPLETED), load(1, LoadStatus.NEW)]))

        assert status.is_fallback is True
        assert status.state == WorkflowState.IN_STORAGE
        assert status.tone == BadgeTone.NEUTRAL
        assert 'yard.workflow.fallback' in caplog.text

    def test_duplicate_sequence_numbers(self):
        status = derive_state(snapshot(inbound=[load(1, LoadStatus.COMPLETED), load(1, LoadStatus.NEW)]))
        assert status.is_fallback is True

    def test_draft_request(self):
        assert derive_state(snapshot(RequestStatus.DRAFT)).is_fallback is True

    def test_inbound_complete_without_inventory(self):
        status = derive_state(snapshot(inbound=[load(1, LoadStatus.COMPLETED)], on_hand=0))
        assert status.is_fallback is True

    def test_malformed_snapshot(self):
        bad = snapshot(inbound=[object()])
        assert derive_state(bad).is_fallback is True

    def test_not_a_snapshot(self):
        assert derive_state(None).is_fallback is True


class TestPurity:

    @pytest.mark.parametrize('snap', [
        snapshot(RequestStatus.PENDING),
        snapshot(inbound=[load(1, LoadStatus.COMPLETED, documents=[UNPROCESSED])]),
        snapshot(inbound=[load(1, LoadStatus.COMPLETED)], outbound=[load(1, LoadStatus.NEW)], on_hand=5),
        snapshot(inbound=[load(2, LoadStatus.NEW), load(1, LoadStatus.NEW)]),
    ])
    def test_same_input_same_output(self, snap):
        assert derive_state(snap) == derive_state(snap)

    def test_every_result_is_a_known_state(self):
        statuses = list(RequestStatus)
        load_statuses = list(LoadStatus)
        for status in statuses:
            for inbound_status in load_statuses:
                for on_hand in (0, 10):
                    result = derive_state(snapshot(status, inbound=[load(1, inbound_status)], on_hand=on_hand))
                    assert result.state in WorkflowState


class TestHelpers:

    def test_progress(self):
        assert progress(snapshot(RequestStatus.PENDING)) == 10
        assert progress(snapshot(RequestStatus.DRAFT)) == 0
        assert progress(snapshot()) == 20
        assert progress(snapshot(inbound=[load(1, LoadStatus.COMPLETED), load(2, LoadStatus.NEW)])) == 40
        assert progress(snapshot(inbound=[load(1, LoadStatus.COMPLETED)], on_hand=10)) == 70
        assert progress(snapshot(RequestStatus.COMPLETED)) == 100

    def test_requires_admin_action(self):
        assert requires_admin_action(snapshot(RequestStatus.PENDING)) is True
        assert requires_admin_action(snapshot(inbound=[load(1, LoadStatus.COMPLETED, documents=[UNPROCESSED])])) is True
        assert requires_admin_action(snapshot(inbound=[load(1, LoadStatus.IN_TRANSIT)])) is False


class TestExtractionFromJson:

    def test_null_is_absent(self):
        assert extraction_from_json(None) is NO_EXTRACTION

    def test_list_is_rows(self):
        extraction = extraction_from_json([{'sku': 'A'}, {'sku': 'B'}], version=2)
        assert extraction == ManifestExtraction(version=2, items=({'sku': 'A'}, {'sku': 'B'}))

    def test_dict_with_items(self):
        extraction = extraction_from_json({'version': 3, 'items': [{'sku': 'A'}]})
        assert extraction.version == 3
        assert extraction.items == ({'sku': 'A'},)

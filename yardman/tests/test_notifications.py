"""
Tests for the notification outbox worker (yard.drain / yard.stuck).
"""

from datetime import timedelta
import uuid

import pytest
from django.test import override_settings
from django.utils import timezone

from yardman import DeliveryError, yard
from yardman.adapters.fanout import FanoutChannel
from yardman.adapters.memory import MemoryChannel
from yardman.models import NotificationType, OutboxEntry
from yardman.notices import RequestApprovedPayload, RequestRejectedPayload, parse_payload, render
from yardman.services.notifications import DrainSummary


pytestmark = pytest.mark.django_db


def queue_approved(reference='SR-1', email='ops@acme.test', **overrides):
    payload = RequestApprovedPayload(
        request_id=1,
        reference=reference,
        company_name='Acme Pipe Co',
        customer_email=email,
        location_names=('Rack A', 'Rack B'),
        quantity=100,
    )
    fields = {'schema_version': payload.VERSION, **overrides}
    return OutboxEntry.objects.create(type=payload.TYPE, payload=payload.to_json(), **fields)


class RecordingChannel:
    """Counts dispatch calls; fails for listed recipients."""

    def __init__(self, fail_for=()):
        self.calls = []
        self.fail_for = set(fail_for)

    def send(self, notice, timeout):
        self.calls.append((notice, timeout))
        if notice.recipient in self.fail_for:
            raise DeliveryError('TRANSPORT', channel='test', detail='connection refused')


class TestDrain:
    """Tests for yard.drain()."""

    def test_successful_dispatch_marks_processed(self, memory_channel):
        entry = queue_approved()

        summary = yard.drain(batch_size=10, max_attempts=3)

        assert (summary.succeeded, summary.failed, summary.skipped) == (1, 0, 0)
        entry.refresh_from_db()
        assert entry.processed is True
        assert entry.processed_at is not None
        assert entry.last_attempt_at is not None
        assert entry.claim_token is None
        assert entry.attempts == 0

        notice = memory_channel.sent[0]
        assert notice.recipient == 'ops@acme.test'
        assert notice.subject == 'Storage Request Approved - SR-1'

    def test_failure_counts_attempt(self):
        entry = queue_approved(email='down@acme.test')
        channel = RecordingChannel(fail_for={'down@acme.test'})

        summary = yard.drain(batch_size=10, max_attempts=3, channel=channel)

        assert summary.failed == 1
        assert summary.errors[0][0] == entry.pk
        entry.refresh_from_db()
        assert entry.processed is False
        assert entry.attempts == 1
        assert 'connection refused' in entry.last_error
        assert entry.claimed_until is None

    def test_never_processed_without_dispatch(self):
        """Every processed entry had a successful send() call."""
        entries = [queue_approved(reference=f'SR-{i}', email=f'c{i}@acme.test') for i in range(4)]
        channel = RecordingChannel(fail_for={'c1@acme.test', 'c3@acme.test'})

        yard.drain(batch_size=10, max_attempts=3, channel=channel)

        delivered = {
            notice.recipient for notice, _ in channel.calls if notice.recipient not in channel.fail_for
        }
        processed = {entry.payload['customer_email'] for entry in OutboxEntry.objects.filter(processed=True)}
        assert processed == delivered == {'c0@acme.test', 'c2@acme.test'}
        assert OutboxEntry.objects.filter(processed=False).count() == len(entries) - 2

    def test_sibling_failure_does_not_undo_success(self):
        ok = queue_approved(email='ok@acme.test')
        bad = queue_approved(email='bad@acme.test')

        yard.drain(batch_size=10, max_attempts=3, channel=RecordingChannel(fail_for={'bad@acme.test'}))

        ok.refresh_from_db()
        bad.refresh_from_db()
        assert ok.processed is True
        assert bad.processed is False
        assert bad.attempts == 1

    def test_exhausted_entries_become_stuck(self):
        entry = queue_approved(email='down@acme.test')
        channel = RecordingChannel(fail_for={'down@acme.test'})

        for _ in range(5):
            yard.drain(batch_size=10, max_attempts=3, channel=channel)

        entry.refresh_from_db()
        assert entry.attempts == 3
        assert entry.processed is False
        assert len(channel.calls) == 3
        assert list(yard.stuck(3)) == [entry]

    def test_retry_succeeds_on_later_pass(self):
        entry = queue_approved(email='flaky@acme.test')
        channel = RecordingChannel(fail_for={'flaky@acme.test'})
        yard.drain(batch_size=10, max_attempts=3, channel=channel)

        channel.fail_for.clear()
        summary = yard.drain(batch_size=10, max_attempts=3, channel=channel)

        assert summary.succeeded == 1
        entry.refresh_from_db()
        assert entry.processed is True
        assert entry.attempts == 1

    def test_batch_size_and_order(self):
        now = timezone.now()
        newest = queue_approved(reference='SR-new', email='new@acme.test', created_at=now)
        oldest = queue_approved(reference='SR-old', email='old@acme.test', created_at=now - timedelta(hours=1))
        channel = RecordingChannel()

        summary = yard.drain(batch_size=1, max_attempts=3, channel=channel)

        assert summary.succeeded == 1
        assert channel.calls[0][0].recipient == 'old@acme.test'
        oldest.refresh_from_db()
        newest.refresh_from_db()
        assert oldest.processed is True
        assert newest.processed is False

    def test_live_claim_is_not_dispatched(self):
        queue_approved(claim_token=uuid.uuid4(), claimed_until=timezone.now() + timedelta(minutes=5))
        channel = RecordingChannel()

        summary = yard.drain(batch_size=10, max_attempts=3, channel=channel)

        assert summary.attempted == 0
        assert channel.calls == []

    def test_expired_claim_is_taken_over(self):
        entry = queue_approved(claim_token=uuid.uuid4(), claimed_until=timezone.now() - timedelta(minutes=5))

        summary = yard.drain(batch_size=10, max_attempts=3, channel=RecordingChannel())

        assert summary.succeeded == 1
        entry.refresh_from_db()
        assert entry.processed is True

    def test_lost_claim_race_is_skipped(self, monkeypatch):
        """Another worker claimed the entry between select and claim."""
        queue_approved()
        channel = RecordingChannel()
        monkeypatch.setattr('yardman.services.notifications._claim', lambda entry, lease: None)

        summary = yard.drain(batch_size=10, max_attempts=3, channel=channel)

        assert summary.skipped == 1
        assert channel.calls == []
        assert OutboxEntry.objects.get().processed is False

    def test_unsupported_payload_version_fails(self):
        entry = queue_approved(schema_version=99)

        summary = yard.drain(batch_size=10, max_attempts=3, channel=RecordingChannel())

        assert summary.failed == 1
        entry.refresh_from_db()
        assert entry.attempts == 1
        assert entry.processed is False
        assert 'UNSUPPORTED_PAYLOAD' in entry.last_error

    def test_malformed_payload_fails(self):
        entry = OutboxEntry.objects.create(
            type=NotificationType.REQUEST_REJECTED,
            payload={'reference': 'SR-9'},
        )

        yard.drain(batch_size=10, max_attempts=3, channel=RecordingChannel())

        entry.refresh_from_db()
        assert entry.attempts == 1
        assert 'INVALID_PAYLOAD' in entry.last_error

    def test_unexpected_channel_error_is_contained(self):
        class BrokenChannel:
            def send(self, notice, timeout):
                raise RuntimeError('boom')

        queue_approved()
        summary = yard.drain(batch_size=10, max_attempts=3, channel=BrokenChannel())

        assert summary.failed == 1
        assert 'RuntimeError: boom' in OutboxEntry.objects.get().last_error

    def test_timeout_is_passed_to_channel(self):
        queue_approved()
        channel = RecordingChannel()

        yard.drain(batch_size=10, max_attempts=3, channel=channel, timeout=2.5)

        assert channel.calls[0][1] == 2.5

    def test_processed_entries_are_ignored(self):
        queue_approved(processed=True, processed_at=timezone.now())
        channel = RecordingChannel()

        summary = yard.drain(batch_size=10, max_attempts=3, channel=channel)

        assert summary.attempted == 0

    def test_rejects_non_positive_batch(self):
        with pytest.raises(ValueError):
            yard.drain(batch_size=0, max_attempts=3, channel=RecordingChannel())


class TestRouting:
    """Each entry goes out on the channels its payload names."""

    @pytest.fixture
    def routes(self):
        email, slack = MemoryChannel(), MemoryChannel()
        return email, slack, FanoutChannel(email=email, slack=slack)

    def test_default_route_is_email(self, pending_request, rack_a, admin_capability, routes):
        email, slack, channel = routes
        yard.approve(pending_request.pk, [rack_a.pk], 30, '', admin_capability)

        assert OutboxEntry.objects.get().payload['channels'] == ['email']
        yard.drain(channel=channel)

        assert len(email.sent) == 1
        assert slack.sent == []

    @override_settings(YARDMAN={'NOTIFICATION_CHANNELS': {'request_rejected': ['slack']}})
    def test_configured_route_per_type(self, make_request, rack_a, admin_capability, routes):
        email, slack, channel = routes
        approved, rejected = make_request(), make_request()
        yard.approve(approved.pk, [rack_a.pk], 30, '', admin_capability)
        yard.reject(rejected.pk, 'No room this season', '', admin_capability)

        summary = yard.drain(channel=channel)

        assert summary.succeeded == 2
        assert [notice.type for notice in email.sent] == ['request_approved']
        assert [notice.type for notice in slack.sent] == ['request_rejected']

    def test_both_routes(self, routes):
        email, slack, channel = routes
        payload = RequestRejectedPayload(
            request_id=3,
            reference='SR-3',
            company_name='Acme Pipe Co',
            customer_email='ops@acme.test',
            reason='Yard is full this month',
            channels=('email', 'slack'),
        )
        OutboxEntry.objects.create(type=payload.TYPE, payload=payload.to_json(), schema_version=payload.VERSION)

        yard.drain(channel=channel)

        assert len(email.sent) == len(slack.sent) == 1

    def test_missing_route_fails_the_entry(self, routes):
        email, slack, _ = routes
        entry = queue_approved()
        entry.payload['channels'] = ['slack']
        entry.save(update_fields=['payload'])

        summary = yard.drain(channel=FanoutChannel(email=email))

        assert summary.failed == 1
        entry.refresh_from_db()
        assert 'NOT_CONFIGURED' in entry.last_error
        assert email.sent == []

    def test_entries_without_routes_go_by_email(self):
        data = {
            'request_id': 1,
            'reference': 'SR-1',
            'location_names': ['Rack A'],
            'quantity': 5,
        }

        payload = parse_payload('request_approved', 1, data)

        assert payload.channels == ('email',)
        assert render(payload).channels == ('email',)

    def test_malformed_routes(self):
        data = {'request_id': 1, 'reference': 'SR-1', 'reason': 'Yard is full', 'channels': 'slack'}

        with pytest.raises(DeliveryError) as exc:
            parse_payload('request_rejected', 1, data)
        assert exc.value.code == 'INVALID_PAYLOAD'


@pytest.mark.django_db(transaction=True)
class TestConcurrentDrain:

    def test_parallel_drains_deliver_once(self, run_concurrently):
        entries = [queue_approved(reference=f'SR-{i}', email=f'c{i}@acme.test') for i in range(8)]
        channel = RecordingChannel()

        summaries = run_concurrently(
            lambda: yard.drain(batch_size=50, max_attempts=3, channel=channel),
            lambda: yard.drain(batch_size=50, max_attempts=3, channel=channel),
        )

        assert all(isinstance(summary, DrainSummary) for summary in summaries)
        assert len(channel.calls) == len(entries)
        assert sorted(notice.recipient for notice, _ in channel.calls) == sorted(
            f'c{i}@acme.test' for i in range(8)
        )
        assert sum(summary.succeeded for summary in summaries) == len(entries)
        assert sum(summary.failed for summary in summaries) == 0
        for summary in summaries:
            assert summary.succeeded + summary.skipped <= len(entries)
        assert OutboxEntry.objects.filter(processed=True).count() == len(entries)


class TestEndToEnd:

    def test_approval_notice_is_delivered(self, pending_request, rack_a, admin_capability, memory_channel):
        yard.approve(pending_request.pk, [rack_a.pk], 30, 'Use gate 2', admin_capability)

        summary = yard.drain()

        assert summary.succeeded == 1
        notice = memory_channel.sent[0]
        assert notice.recipient == pending_request.customer_email
        assert pending_request.reference in notice.subject
        assert 'Rack A' in notice.text
        assert 'Use gate 2' in notice.text


class TestRender:

    def test_rejection_notice(self):
        payload = RequestRejectedPayload(
            request_id=7,
            reference='SR-7',
            company_name='Acme <Pipe>',
            customer_email='ops@acme.test',
            reason='Yard is full this month',
        )
        notice = render(parse_payload(payload.TYPE, payload.VERSION, payload.to_json()))

        assert notice.subject == 'Storage Request Update - SR-7'
        assert 'Yard is full this month' in notice.text
        assert '&lt;Pipe&gt;' in notice.html
        assert '<Pipe>' not in notice.html

    def test_unknown_type(self):
        with pytest.raises(DeliveryError) as exc:
            parse_payload('request_exploded', 1, {})
        assert exc.value.code == 'UNSUPPORTED_PAYLOAD'

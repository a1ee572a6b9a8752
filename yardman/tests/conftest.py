"""
Pytest fixtures for Yardman tests.
"""

import threading
from datetime import timedelta
from itertools import count

import pytest
from django.db import connection
from django.utils import timezone

from yardman.adapters import get_delivery_channel, reset_backends
from yardman.models import (
    Document,
    InventoryRecord,
    InventoryStatus,
    Load,
    LoadDirection,
    LoadStatus,
    Location,
    RequestStatus,
    StorageRequest,
)
from yardman.protocols import AdminCapability, AdminScope


_sequence = count(1)


@pytest.fixture
def admin_capability():
    """Capability with every scope."""
    return AdminCapability(actor_id='ops-admin')


@pytest.fixture
def reject_only_capability():
    return AdminCapability(actor_id='ops-junior', scopes=frozenset({AdminScope.REJECT}))


@pytest.fixture
def make_location(db):
    """Factory: make_location(capacity, occupied=0, name=None)."""
    def _make(capacity, occupied=0, name=None, yard='North'):
        n = next(_sequence)
        return Location.objects.create(
            code=f'rack-{n:05d}',
            name=name or f'Rack {n}',
            yard=yard,
            capacity=capacity,
            occupied=occupied,
        )
    return _make


@pytest.fixture
def rack_a(make_location):
    """Rack A: capacity 60, empty."""
    return make_location(60, name='Rack A')


@pytest.fixture
def rack_b(make_location):
    """Rack B: capacity 50, empty."""
    return make_location(50, name='Rack B')


@pytest.fixture
def make_request(db):
    """Factory: make_request(status=PENDING, quantity=100)."""
    def _make(status=RequestStatus.PENDING, quantity=100, **kwargs):
        n = next(_sequence)
        kwargs.setdefault('customer_email', f'customer{n}@example.com')
        kwargs.setdefault('company_name', 'Acme Pipe Co')
        return StorageRequest.objects.create(
            reference=f'SR-{n:05d}',
            customer_id=f'cust-{n}',
            status=status,
            requested_quantity=quantity,
            **kwargs,
        )
    return _make


@pytest.fixture
def pending_request(make_request):
    """Pending request for 100 units."""
    return make_request()


@pytest.fixture
def make_load(db):
    """Factory: make_load(request, n, status, documents=[extraction or None, ...])."""
    def _make(request, sequence_number=1, status=LoadStatus.NEW,
              direction=LoadDirection.INBOUND, documents=()):
        load = Load.objects.create(
            request=request,
            direction=direction,
            sequence_number=sequence_number,
            status=status,
            scheduled_start=timezone.now() + timedelta(days=sequence_number),
        )
        for i, extraction in enumerate(documents, start=1):
            Document.objects.create(
                load=load,
                file_name=f'manifest-{load.pk}-{i}.pdf',
                document_type='manifest',
                extraction=extraction,
            )
        return load
    return _make


@pytest.fixture
def store_inventory(db):
    def _store(request, quantity, location=None):
        return InventoryRecord.objects.create(
            request=request,
            location=location,
            status=InventoryStatus.IN_STORAGE,
            quantity=quantity,
        )
    return _store


@pytest.fixture
def memory_channel():
    """The configured MemoryChannel, emptied before and after the test."""
    reset_backends()
    channel = get_delivery_channel()
    channel.reset()
    yield channel
    channel.reset()
    reset_backends()


@pytest.fixture
def run_concurrently():
    """
    Run callables in threads released together by a barrier.

    Returns each call's result, or the exception it raised. Every thread
    closes its own database connection.
    """
    def _run(*calls):
        barrier = threading.Barrier(len(calls))
        outcomes = [None] * len(calls)

        def runner(index, call):
            try:
                barrier.wait()
                outcomes[index] = call()
            except Exception as exc:
                outcomes[index] = exc
            finally:
                connection.close()

        threads = [threading.Thread(target=runner, args=(i, call)) for i, call in enumerate(calls)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes
    return _run

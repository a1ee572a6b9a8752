"""
Shared guards for state-changing operations.

- require_scope(): capability check, before any DB access
- Deadline: per-operation time budget
- storage_guard(): maps database failures to TransitionError
"""

import logging
from contextlib import contextmanager
from time import monotonic

from django.db import DatabaseError, OperationalError, connection

from yardman.conf import yardman_settings
from yardman.exceptions import TransitionError
from yardman.protocols.authorization import AdminCapability, AdminScope

logger = logging.getLogger('yardman')

# PostgreSQL: lock_not_available, query_canceled (statement_timeout)
TIMEOUT_SQLSTATES = frozenset({'55P03', '57014'})

_SET_TIMEOUTS = "SELECT set_config('lock_timeout', %s, true), set_config('statement_timeout', %s, true)"


def require_scope(capability: AdminCapability | None, scope: AdminScope) -> AdminCapability:
    """Raise PERMISSION_DENIED unless the capability grants ``scope``."""
    if not isinstance(capability, AdminCapability) or not capability.permits(scope):
        raise TransitionError(
            'PERMISSION_DENIED',
            scope=scope.value,
            actor_id=getattr(capability, 'actor_id', None),
        )
    return capability


class Deadline:
    """
    Time budget for one operation.

    ``timeout=None`` falls back to TRANSITION_TIMEOUT_SECONDS; if that is
    None too, the deadline never expires.
    """

    def __init__(self, timeout: float | None = None):
        if timeout is None:
            timeout = yardman_settings.TRANSITION_TIMEOUT_SECONDS
        if timeout is not None and timeout <= 0:
            raise TransitionError('INVALID_ARGUMENT', field='timeout', value=timeout)
        self.timeout = timeout
        self.started = monotonic()

    @property
    def remaining(self) -> float | None:
        if self.timeout is None:
            return None
        return self.timeout - (monotonic() - self.started)

    @contextmanager
    def bounded(self):
        """
        Bound lock waits and statements on PostgreSQL for the enclosed block.

        Enter inside transaction.atomic(). The limits are transaction-local,
        so the caller's previous values are put back on a clean exit; an
        error rolls the block back and PostgreSQL reverts them itself.
        """
        if self.timeout is None or connection.vendor != 'postgresql':
            yield
            return
        ms = f"{max(int(self.remaining * 1000), 1)}ms"
        with connection.cursor() as cursor:
            cursor.execute("SELECT current_setting('lock_timeout'), current_setting('statement_timeout')")
            previous = cursor.fetchone()
            cursor.execute(_SET_TIMEOUTS, [ms, ms])
        yield
        with connection.cursor() as cursor:
            cursor.execute(_SET_TIMEOUTS, list(previous))

    def check(self, **context) -> None:
        """Raise TIMEOUT if the budget is spent. Call before commit."""
        remaining = self.remaining
        if remaining is not None and remaining < 0:
            raise TransitionError('TIMEOUT', timeout=self.timeout, **context)


def _sqlstate(exc: DatabaseError) -> str | None:
    cause = exc.__cause__
    return getattr(cause, 'sqlstate', None) or getattr(cause, 'pgcode', None)


@contextmanager
def storage_guard(operation: str, **context):
    """
    Translate database errors raised inside the block.

    Lock/statement timeouts become TIMEOUT; any other DatabaseError
    becomes UNEXPECTED. TransitionError passes through untouched.
    """
    try:
        yield
    except OperationalError as exc:
        if _sqlstate(exc) in TIMEOUT_SQLSTATES:
            logger.warning(
                "yard.%s.timeout", operation,
                extra={'operation': operation, **context},
            )
            raise TransitionError('TIMEOUT', operation=operation, **context) from exc
        logger.exception("yard.%s.failed", operation, extra={'operation': operation, **context})
        raise TransitionError('UNEXPECTED', operation=operation, detail=str(exc), **context) from exc
    except DatabaseError as exc:
        logger.exception("yard.%s.failed", operation, extra={'operation': operation, **context})
        raise TransitionError('UNEXPECTED', operation=operation, detail=str(exc), **context) from exc

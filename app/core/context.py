"""Request-scoped cancellation: a deadline bound to a DB session and checked before each statement."""

import time
from typing import Any

from sqlalchemy import event
from sqlalchemy.orm import ORMExecuteState, Session

from app.core.config import settings
from app.core.errors import OperationCancelled

_CONTEXT_KEY = "request_context"


class RequestContext:
    """
    Cancellation signal for one request.

    Fires when the deadline passes or cancel() is called. Handles never share
    a context across requests.
    """

    def __init__(self, timeout: float | None = None) -> None:
        if timeout is None:
            timeout = settings.REQUEST_TIMEOUT_SEC
        self.deadline = time.monotonic() + timeout
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled or time.monotonic() >= self.deadline

    def remaining(self) -> float:
        """Seconds left before the deadline (0 when already cancelled)."""
        if self._cancelled:
            return 0.0
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise OperationCancelled if the signal has fired."""
        if self.cancelled:
            raise OperationCancelled()


def bind_request_context(session: Session, ctx: RequestContext) -> Session:
    session.info[_CONTEXT_KEY] = ctx
    return session


def get_request_context(session: Session) -> RequestContext | None:
    return session.info.get(_CONTEXT_KEY)


def check_cancelled(session: Session) -> None:
    ctx = get_request_context(session)
    if ctx is not None:
        ctx.check()


@event.listens_for(Session, "do_orm_execute")
def _check_before_execute(orm_execute_state: ORMExecuteState) -> None:
    check_cancelled(orm_execute_state.session)


@event.listens_for(Session, "before_flush")
def _check_before_flush(session: Session, flush_context: Any, instances: Any) -> None:
    check_cancelled(session)

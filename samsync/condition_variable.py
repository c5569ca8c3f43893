"""An asynchronous condition variable whose waiters carry their own predicate."""

from __future__ import annotations

import functools
import threading
from typing import Any, Callable

from samsync.context import CONCURRENCY_HINT_DEFAULT, CancellationSlot, CancellationType, IoContext
from samsync.errors import OperationAborted
from samsync.oplist import PredicateOp, WaitQueue

__all__ = ["ConditionVariable"]

WaitHandler = Callable[[BaseException | None], Any]


def _always() -> bool:
    return True


class ConditionVariable:
    """Waiters register a predicate and are woken by a notification once it holds.

    A waiter whose predicate already holds when it starts completes at once.
    A waiter without a predicate is woken by any notification.
    """

    def __init__(self, context: IoContext, concurrency_hint: int = CONCURRENCY_HINT_DEFAULT) -> None:
        self.context = context
        self.concurrency_hint = concurrency_hint
        self._mtx = threading.RLock()
        self._closed = False
        self._waiters = WaitQueue()
        context.register(self)

    def __repr__(self) -> str:
        return f"<ConditionVariable waiting={self.waiting}>"

    @property
    def waiting(self) -> int:
        with self._mtx:
            return len(self._waiters)

    def _cancel(self, op: PredicateOp, kind: CancellationType) -> None:
        if kind == CancellationType.NONE:
            return
        with self._mtx:
            op.complete(OperationAborted())

    def async_wait(
        self,
        predicate: Callable[[], bool] | None,
        handler: WaitHandler,
        slot: CancellationSlot | None = None,
    ) -> None:
        """Post ``handler(None)`` once notified with ``predicate`` true; ``handler(error)`` if aborted."""
        with self._mtx:
            if self._closed:
                self.context.post(handler, OperationAborted())
                return
            if predicate is not None and predicate():
                self.context.post(handler, None)
                return
            op = PredicateOp(self.context, handler, predicate or _always, slot)
            if slot is not None and slot.is_connected():
                slot.assign(functools.partial(self._cancel, op))
            self._waiters.add(op)

    def notify_one(self) -> None:
        """Wake the oldest waiter whose predicate holds."""
        with self._mtx:
            for op in self._waiters:
                if op.done():
                    op.complete(None)
                    return

    def notify_all(self) -> None:
        """Wake every waiter whose predicate holds."""
        with self._mtx:
            for op in self._waiters:
                if op.done():
                    op.complete(None)

    def shutdown(self) -> None:
        """Drop every waiter without calling it."""
        with self._mtx:
            self._closed = True
            queue = self._waiters.take()
        queue.shutdown()

    def close(self) -> None:
        """Complete every waiter with ``OperationAborted`` and detach from the context."""
        self.context.unregister(self)
        with self._mtx:
            self._closed = True
            queue = self._waiters.take()
        queue.abort_all()
"""An asynchronous counting semaphore whose waiters complete through an IoContext."""

from __future__ import annotations

import functools
import threading
from typing import Any, Callable

from samsync.context import (
    CONCURRENCY_HINT_1,
    CONCURRENCY_HINT_DEFAULT,
    CancellationSlot,
    CancellationType,
    IoContext,
)
from samsync.errors import DeadlockError, OperationAborted
from samsync.oplist import WaitOp, WaitQueue

__all__ = ["Semaphore"]

AcquireHandler = Callable[[BaseException | None], Any]


class Semaphore:
    """A counting semaphore; asynchronous waiters are served first-in first-out.

    A synchronous ``acquire`` on a single-threaded context raises
    ``DeadlockError`` instead of blocking.
    """

    def __init__(
        self,
        context: IoContext,
        initial_count: int = 1,
        concurrency_hint: int = CONCURRENCY_HINT_DEFAULT,
    ) -> None:
        self.context = context
        self.concurrency_hint = concurrency_hint
        self._single_threaded = concurrency_hint == CONCURRENCY_HINT_1 or context.single_threaded()
        self._mtx = threading.RLock()
        self._changed = threading.Condition(self._mtx)
        self._count = initial_count
        self._closed = False
        self._waiters = WaitQueue()
        context.register(self)

    def __repr__(self) -> str:
        return f"<Semaphore count={self.count} waiting={len(self._waiters)}>"

    @property
    def count(self) -> int:
        """Units currently available."""
        with self._mtx:
            return self._count

    def _cancel(self, op: WaitOp, kind: CancellationType) -> None:
        if kind == CancellationType.NONE:
            return
        with self._mtx:
            op.complete(OperationAborted())

    def async_acquire(self, handler: AcquireHandler, slot: CancellationSlot | None = None) -> None:
        """Take one unit, then post ``handler(None)``; ``handler(error)`` if aborted."""
        with self._mtx:
            if self._count > 0:
                self._count -= 1
                self.context.post(handler, None)
                return
            if self._closed:
                self.context.post(handler, OperationAborted())
                return
            op = WaitOp(self.context, handler, slot)
            if slot is not None and slot.is_connected():
                slot.assign(functools.partial(self._cancel, op))
            self._waiters.add(op)

    def try_acquire(self) -> bool:
        with self._mtx:
            if self._count <= 0:
                return False
            self._count -= 1
            return True

    def acquire(self) -> None:
        """Take one unit synchronously, blocking where that can work."""
        with self._changed:
            while self._count <= 0:
                if self._single_threaded:
                    raise DeadlockError(operation="acquire")
                if self._closed:
                    raise OperationAborted(operation="acquire")
                self._changed.wait()
            self._count -= 1

    def release(self) -> None:
        """Return one unit, handing it to the oldest waiter if there is one."""
        with self._mtx:
            op = self._waiters.first()
            if op is not None:
                op.complete(None)
                return
            self._count += 1
            self._changed.notify_all()

    def value(self) -> int:
        """Available units minus queued waiters; negative while waiters queue."""
        with self._mtx:
            return self._count - len(self._waiters)

    def shutdown(self) -> None:
        """Drop every waiter without calling it; blocked acquirers are aborted."""
        with self._mtx:
            self._closed = True
            queue = self._waiters.take()
            self._changed.notify_all()
        queue.shutdown()

    def close(self) -> None:
        """Complete every waiter with ``OperationAborted`` and detach from the context."""
        self.context.unregister(self)
        with self._mtx:
            self._closed = True
            queue = self._waiters.take()
            self._changed.notify_all()
        queue.abort_all()
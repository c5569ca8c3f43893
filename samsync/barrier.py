"""An asynchronous barrier whose waiters complete through an IoContext."""

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

__all__ = ["Barrier"]

ArriveHandler = Callable[[BaseException | None], Any]


class Barrier:
    """A reusable barrier for ``init_count`` participants.

    Each arrival that is not the last one waits; the last arrival releases
    every waiter at once and the barrier starts over with a new phase.
    A synchronous ``arrive`` on a single-threaded context raises
    ``DeadlockError`` instead of blocking.
    """

    def __init__(
        self,
        context: IoContext,
        init_count: int,
        concurrency_hint: int = CONCURRENCY_HINT_DEFAULT,
    ) -> None:
        self.context = context
        self.init_count = init_count
        self.concurrency_hint = concurrency_hint
        self._single_threaded = concurrency_hint == CONCURRENCY_HINT_1 or context.single_threaded()
        self._mtx = threading.RLock()
        self._changed = threading.Condition(self._mtx)
        self._count = init_count
        self._generation = 0
        self._closed = False
        self._waiters = WaitQueue()
        context.register(self)

    def __repr__(self) -> str:
        return f"<Barrier {self.remaining}/{self.init_count} remaining, {len(self._waiters)} waiting>"

    @property
    def remaining(self) -> int:
        """Number of arrivals still needed to complete the current phase."""
        with self._mtx:
            return self._count

    @property
    def generation(self) -> int:
        """Number of phases completed so far."""
        with self._mtx:
            return self._generation

    def _complete_phase(self) -> bool:
        if self._count > 1:
            return False
        self._count = self.init_count
        self._generation += 1
        self._waiters.complete_all(None)
        self._changed.notify_all()
        return True

    def _cancel(self, op: WaitOp, kind: CancellationType) -> None:
        if kind == CancellationType.NONE:
            return
        with self._mtx:
            op.complete(OperationAborted())

    def _watch(self, op: WaitOp, slot: CancellationSlot | None) -> None:
        if slot is not None and slot.is_connected():
            slot.assign(functools.partial(self._cancel, op))

    def _abandon(self) -> WaitQueue:
        with self._mtx:
            self._closed = True
            queue = self._waiters.take()
            self._changed.notify_all()
        return queue

    def async_arrive(self, handler: ArriveHandler, slot: CancellationSlot | None = None) -> None:
        """Arrive and post ``handler(None)`` once everyone has; ``handler(error)`` if aborted."""
        with self._mtx:
            if self._complete_phase():
                self.context.post(handler, None)
                return
            if self._closed:
                self.context.post(handler, OperationAborted())
                return
            self._count -= 1
            op = WaitOp(self.context, handler, slot)
            self._watch(op, slot)
            self._waiters.add(op)

    def try_arrive(self) -> bool:
        """Arrive only if this is the last arrival of the phase."""
        with self._mtx:
            return self._complete_phase()

    def arrive(self) -> None:
        """Arrive and block until the phase completes."""
        with self._changed:
            if self._complete_phase():
                return
            if self._single_threaded:
                raise DeadlockError(operation="arrive")
            generation = self._generation
            if not self._closed:
                self._count -= 1
            while self._generation == generation:
                if self._closed:
                    raise OperationAborted(operation="arrive")
                self._changed.wait()

    def rebind(self, context: IoContext | None = None) -> Barrier:
        """Return a new barrier on ``context`` that takes over this one's state."""
        other = Barrier(self.context if context is None else context, self.init_count, self.concurrency_hint)
        with self._mtx:
            other._count, self._count = self._count, self.init_count
            other._generation = self._generation
            queue = self._waiters.take()
            for op in queue:
                if op.slot is not None and op.slot.has_handler:
                    other._watch(op, op.slot)
            other._waiters = queue
            self._changed.notify_all()
        return other

    def shutdown(self) -> None:
        """Drop every waiter without calling it; blocked arrivals are aborted."""
        self._abandon().shutdown()

    def close(self) -> None:
        """Complete every waiter with ``OperationAborted`` and detach from the context."""
        self.context.unregister(self)
        self._abandon().abort_all()
"""Pending asynchronous operations and the ordered queues that hold them."""

from __future__ import annotations

from typing import Any, Callable, Iterator

from samsync.context import CancellationSlot, IoContext
from samsync.errors import OperationAborted

__all__ = ["WaitOp", "PredicateOp", "WaitQueue"]


class WaitOp:
    """A waiting handler that keeps its context busy until it completes.

    Completion posts ``handler(error, *args)`` to the context; shutdown
    discards the handler without calling it.
    """

    def __init__(
        self,
        context: IoContext,
        handler: Callable[..., Any],
        slot: CancellationSlot | None = None,
    ) -> None:
        self.context = context
        self.handler = handler
        self.slot = slot
        self._queue: WaitQueue | None = None
        self._pending = True
        context.work_started()

    @property
    def pending(self) -> bool:
        return self._pending

    def _finish(self) -> None:
        self._pending = False
        if self.slot is not None:
            self.slot.clear()
        if self._queue is not None:
            self._queue.remove(self)

    def complete(self, error: BaseException | None, *args: Any) -> bool:
        """Post the handler with ``error`` and ``args``; False if already done."""
        if not self._pending:
            return False
        self._finish()
        self.context.post(self.handler, error, *args)
        self.context.work_finished()
        return True

    def shutdown(self) -> None:
        """Drop the operation without invoking its handler."""
        if not self._pending:
            return
        self._finish()
        self.context.work_finished()


class PredicateOp(WaitOp):
    """A waiting handler that may only be woken once its predicate holds."""

    def __init__(
        self,
        context: IoContext,
        handler: Callable[..., Any],
        predicate: Callable[[], bool],
        slot: CancellationSlot | None = None,
    ) -> None:
        super().__init__(context, handler, slot)
        self.predicate = predicate

    def done(self) -> bool:
        return bool(self.predicate())


class WaitQueue:
    """First-in first-out queue of pending operations with O(1) removal."""

    def __init__(self) -> None:
        self._ops: dict[int, WaitOp] = {}

    def add(self, op: WaitOp) -> None:
        if op._queue is not None:
            raise ValueError("operation is already queued")
        self._ops[id(op)] = op
        op._queue = self

    def remove(self, op: WaitOp) -> None:
        if self._ops.pop(id(op), None) is None:
            raise ValueError("operation is not in this queue")
        op._queue = None

    def first(self) -> WaitOp | None:
        return next(iter(self._ops.values()), None)

    def complete_all(self, error: BaseException | None, *args: Any) -> None:
        """Complete every queued operation, oldest first."""
        for op in list(self._ops.values()):
            op.complete(error, *args)

    def abort_all(self) -> None:
        """Complete every queued operation with ``OperationAborted``."""
        for op in list(self._ops.values()):
            op.complete(OperationAborted())

    def take(self) -> WaitQueue:
        """Move all operations into a new queue, leaving this one empty."""
        taken = WaitQueue()
        taken._ops, self._ops = self._ops, {}
        for op in taken._ops.values():
            op._queue = taken
        return taken

    def shutdown(self) -> None:
        """Drop every queued operation without invoking its handler."""
        for op in list(self.take()):
            op.shutdown()

    def __len__(self) -> int:
        return len(self._ops)

    def __iter__(self) -> Iterator[WaitOp]:
        return iter(list(self._ops.values()))

    def __contains__(self, op: object) -> bool:
        return self._ops.get(id(op)) is op
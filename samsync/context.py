"""Execution context, cancellation signals and service-member bookkeeping."""

from __future__ import annotations

import enum
import threading
import time
from collections import deque
from typing import Any, Callable, Protocol

from samsync.errors import SamError

__all__ = [
    "CONCURRENCY_HINT_DEFAULT",
    "CONCURRENCY_HINT_1",
    "CancellationType",
    "CancellationSlot",
    "CancellationSignal",
    "IoContext",
]

CONCURRENCY_HINT_DEFAULT = -1
CONCURRENCY_HINT_1 = 1


class CancellationType(enum.Flag):
    """Kinds of cancellation that a signal can request."""

    NONE = 0
    TERMINAL = 1
    PARTIAL = 2
    TOTAL = 4
    ALL = TERMINAL | PARTIAL | TOTAL


class CancellationSlot:
    """The receiving end of a cancellation signal; holds at most one handler."""

    def __init__(self, signal: CancellationSignal | None = None) -> None:
        self._signal = signal
        self._handler: Callable[[CancellationType], Any] | None = None
        self._lock = threading.Lock()

    def assign(self, handler: Callable[[CancellationType], Any]) -> None:
        """Install ``handler``, replacing any previous one."""
        if self._signal is None:
            raise SamError("cancellation slot is not connected to a signal", operation="assign")
        with self._lock:
            self._handler = handler

    def clear(self) -> None:
        """Remove the installed handler, if any."""
        with self._lock:
            self._handler = None

    def is_connected(self) -> bool:
        """Return True if the slot belongs to a signal."""
        return self._signal is not None

    @property
    def has_handler(self) -> bool:
        with self._lock:
            return self._handler is not None

    def _take_handler(self) -> Callable[[CancellationType], Any] | None:
        with self._lock:
            return self._handler


class CancellationSignal:
    """Emits cancellation requests to its single slot."""

    def __init__(self) -> None:
        self._slot = CancellationSlot(self)

    def slot(self) -> CancellationSlot:
        return self._slot

    def emit(self, kind: CancellationType = CancellationType.ALL) -> None:
        """Invoke the slot's handler with ``kind``, if one is installed."""
        handler = self._slot._take_handler()
        if handler is not None:
            handler(kind)


class ServiceMember(Protocol):
    def shutdown(self) -> None: ...


class IoContext:
    """A handler queue that runs posted callables and tracks outstanding work.

    ``run`` returns once there is neither queued handler nor outstanding
    work, leaving the context stopped until ``restart`` is called.
    """

    def __init__(self, concurrency_hint: int = CONCURRENCY_HINT_DEFAULT) -> None:
        self.concurrency_hint = concurrency_hint
        self._cond = threading.Condition()
        self._queue: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()
        self._work = 0
        self._stopped = False
        self._shut_down = False
        self._members: dict[int, ServiceMember] = {}

    def __enter__(self) -> IoContext:
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()

    @property
    def stopped(self) -> bool:
        with self._cond:
            return self._stopped

    @property
    def outstanding_work(self) -> int:
        with self._cond:
            return self._work

    @property
    def pending_handlers(self) -> int:
        with self._cond:
            return len(self._queue)

    def single_threaded(self) -> bool:
        """Return True if the context was declared to run on one thread only."""
        return self.concurrency_hint == CONCURRENCY_HINT_1

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        """Queue ``fn(*args)`` for execution by ``run``; dropped after shutdown."""
        with self._cond:
            if self._shut_down:
                return
            self._queue.append((fn, args))
            self._cond.notify()

    def work_started(self) -> None:
        with self._cond:
            self._work += 1

    def work_finished(self) -> None:
        with self._cond:
            if self._work > 0:
                self._work -= 1
            if self._work == 0:
                self._cond.notify_all()

    def _run(self, limit: int | None, deadline: float | None) -> int:
        executed = 0
        while limit is None or executed < limit:
            with self._cond:
                while True:
                    if self._stopped:
                        return executed
                    if self._queue:
                        fn, args = self._queue.popleft()
                        break
                    if self._work == 0:
                        self._stopped = True
                        self._cond.notify_all()
                        return executed
                    if deadline is None:
                        self._cond.wait()
                    else:
                        remaining = deadline - time.monotonic()
                        if remaining <= 0:
                            return executed
                        self._cond.wait(remaining)
            fn(*args)
            executed += 1
        return executed

    def run(self) -> int:
        """Run handlers until stopped or out of work; return how many ran."""
        return self._run(None, None)

    def run_one(self) -> int:
        """Run at most one handler, waiting for it while work is outstanding."""
        return self._run(1, None)

    def run_for(self, seconds: float) -> int:
        """Like ``run`` but give up after ``seconds``."""
        return self._run(None, time.monotonic() + seconds)

    def restart(self) -> None:
        with self._cond:
            self._stopped = False

    def stop(self) -> None:
        with self._cond:
            self._stopped = True
            self._cond.notify_all()

    def register(self, member: ServiceMember) -> None:
        """Track ``member`` so that ``shutdown`` reaches it."""
        with self._cond:
            self._members[id(member)] = member

    def unregister(self, member: ServiceMember) -> None:
        with self._cond:
            self._members.pop(id(member), None)

    def shutdown(self) -> None:
        """Shut every registered member down and discard queued handlers."""
        with self._cond:
            if self._shut_down:
                return
            self._shut_down = True
            self._stopped = True
            members = list(self._members.values())
            self._members.clear()
            self._queue.clear()
            self._cond.notify_all()
        for member in members:
            member.shutdown()
        with self._cond:
            self._queue.clear()
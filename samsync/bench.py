"""Benchmark comparing the condition variable with a polling imitation."""

from __future__ import annotations

import argparse
import contextlib
import sys
import threading
import time
from collections import deque
from typing import Any, Callable, Iterator, Protocol, TextIO

from samsync.condition_variable import ConditionVariable
from samsync.context import CONCURRENCY_HINT_1, CONCURRENCY_HINT_DEFAULT, IoContext

__all__ = ["PollingCondition", "run_benchmark", "timed", "main"]

DEFAULT_COUNT = 1_000_000


class _Condition(Protocol):
    def async_wait(self, predicate: Callable[[], bool], handler: Callable[..., Any]) -> None: ...

    def notify_one(self) -> None: ...

    def notify_all(self) -> None: ...


class PollingCondition:
    """A condition that re-checks each parked waiter's predicate when notified."""

    def __init__(self, context: IoContext) -> None:
        self.context = context
        self._lock = threading.Lock()
        self._parked: deque[tuple[Callable[[], bool], Callable[..., Any] | None]] = deque()

    @property
    def parked(self) -> int:
        with self._lock:
            return len(self._parked)

    def _check(self, predicate: Callable[[], bool], handler: Callable[..., Any] | None) -> None:
        if predicate():
            if handler is not None:
                handler(None)
            return
        with self._lock:
            self._parked.append((predicate, handler))

    def async_wait(self, predicate: Callable[[], bool], handler: Callable[..., Any] | None = None) -> None:
        """Check ``predicate`` on the context and call ``handler(None)`` once it holds."""
        self.context.post(self._check, predicate, handler)

    def notify_one(self) -> None:
        with self._lock:
            if not self._parked:
                return
            entry = self._parked.popleft()
        self.context.post(self._check, *entry)

    def notify_all(self) -> None:
        with self._lock:
            parked, self._parked = self._parked, deque()
        for entry in parked:
            self.context.post(self._check, *entry)


def run_benchmark(factory: Callable[[IoContext], _Condition], context: IoContext, n: int) -> int:
    """Chain ``n`` wait-and-notify steps on ``context``; return the waits that completed."""
    cv = factory(context)
    completed = 0

    def on_wait(error: BaseException | None) -> None:
        nonlocal completed
        if error is None:
            completed += 1

    def step(i: int) -> None:
        if i != 0:
            cv.async_wait(lambda: i % 4 == 0, on_wait)
        if i % 100 == 0:
            cv.notify_all()
        else:
            cv.notify_one()
        if i != 0:
            context.post(step, i - 1)
        else:
            context.post(context.stop)

    context.post(step, n)
    context.run()
    return completed


@contextlib.contextmanager
def timed(name: str, out: TextIO | None = None) -> Iterator[None]:
    """Print how long the enclosed block took, in microseconds."""
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed = int((time.monotonic() - start) * 1_000_000)
        print(f"Benchmark  {name}: {elapsed} us", file=out if out is not None else sys.stdout)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Benchmark asynchronous condition variables.")
    parser.add_argument("--count", type=int, default=DEFAULT_COUNT, help="number of wait steps")
    args = parser.parse_args(argv)

    with IoContext(CONCURRENCY_HINT_1) as warmup:
        warmup.run()

    cases: list[tuple[str, int, Callable[[IoContext], _Condition]]] = [
        ("single-threaded polling", CONCURRENCY_HINT_1, PollingCondition),
        ("single-threaded condvar", CONCURRENCY_HINT_1, ConditionVariable),
        ("multi-threaded  polling", CONCURRENCY_HINT_DEFAULT, PollingCondition),
        ("multi-threaded  condvar", CONCURRENCY_HINT_DEFAULT, ConditionVariable),
    ]
    for name, hint, factory in cases:
        with timed(name), IoContext(hint) as context:
            run_benchmark(factory, context, args.count)
    return 0


if __name__ == "__main__":
    sys.exit(main())
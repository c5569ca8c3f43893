# samsync

Synchronisation primitives for callback-driven event loops. Each primitive
belongs to an `IoContext` (from `samsync.context`). A pending operation
completes by posting its handler to that context, so handlers run only when
the context runs (`run`, `run_one` or `run_for`). An operation that waits can
be cancelled through a `CancellationSlot`.

## Primitives

- `samsync.barrier.Barrier(context, init_count, concurrency_hint=-1)`: a
  reusable barrier for `init_count` participants. It offers `async_arrive`,
  `arrive`, `try_arrive` and `rebind`, and the properties `remaining` and
  `generation`.
- `samsync.semaphore.Semaphore(context, initial_count=1, concurrency_hint=-1)`:
  a counting semaphore. It offers `async_acquire`, `acquire`, `try_acquire`,
  `release` and `value`, and the property `count`. Waiters are served
  first-in first-out.
- `samsync.condition_variable.ConditionVariable(context, concurrency_hint=-1)`:
  each waiter passes its own predicate to `async_wait(predicate, handler, slot)`.
  If the predicate already holds, the waiter completes at once. Otherwise
  `notify_one` wakes the oldest waiter whose predicate holds, and `notify_all`
  wakes every such waiter. A waiter with no predicate is woken by any
  notification.

Every primitive also has `shutdown()` and `close()`. `shutdown()` drops
pending waiters without calling them. `close()` completes them with
`OperationAborted` and detaches the primitive from its context. Calling
`IoContext.shutdown()`, or leaving a `with IoContext(...)` block, shuts down
every primitive registered with that context.

## Errors

Handlers are called with a single error argument. It is `None` on success and
an `OperationAborted` instance when the wait was cancelled or the primitive
was closed. `samsync.errors.is_aborted(error)` tests for this. A synchronous
call that cannot succeed raises a `SamError` subclass. On a single-threaded
context (concurrency hint `1`), `Barrier.arrive` and `Semaphore.acquire` raise
`DeadlockError` when they would otherwise have to block.

## Example

```python
from samsync.context import CancellationSignal, CancellationType, IoContext
from samsync.semaphore import Semaphore

ctx = IoContext(1)
sem = Semaphore(ctx, 1)
events = []

sem.async_acquire(lambda err: events.append(("first", err)))
sem.async_acquire(lambda err: events.append(("second", err)))
ctx.run_for(0.01)       # the first handler runs; the second is still waiting
sem.release()
ctx.run_for(0.01)       # the second handler runs
# events == [("first", None), ("second", None)]

signal = CancellationSignal()
sem.async_acquire(lambda err: events.append(("third", err)), signal.slot())
signal.emit(CancellationType.ALL)   # the third waiter is aborted
ctx.restart()
ctx.run()
sem.close()
```

## What the package does not provide

The package has no exclusive or reader/writer lock and no lock-guard object.
Mutual exclusion can be built from a `Semaphore` with an initial count of 1.

## Installing and testing

```
pip install samsync
pip install "samsync[test]"
pytest
```

## Benchmark

```
samsync-bench
samsync-bench --count 10000
```

The command times `ConditionVariable` against `samsync.bench.PollingCondition`,
a condition that re-checks each parked waiter's predicate when notified. It
runs both on single-threaded and multi-threaded contexts and prints one line
per run, in microseconds. `--count` sets the number of wait steps. The default
is 1,000,000.
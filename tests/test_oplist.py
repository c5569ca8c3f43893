import pytest

from samsync.context import CancellationSignal, CancellationType, IoContext
from samsync.errors import OperationAborted, is_aborted
from samsync.oplist import PredicateOp, WaitOp, WaitQueue


@pytest.fixture
def ctx():
    return IoContext()


def _op(ctx, slot=None):
    """A single op whose completion arguments land in the returned list."""
    results = []
    return WaitOp(ctx, lambda *args: results.append(args), slot), results


def _queued(ctx, n):
    """A queue holding ``n`` ops whose completions land in the returned list."""
    results = []
    queue = WaitQueue()
    ops = [WaitOp(ctx, lambda err, i=i: results.append((i, err))) for i in range(n)]
    for op in ops:
        queue.add(op)
    return queue, ops, results


def _cancellable(ctx):
    sig = CancellationSignal()
    op, results = _op(ctx, sig.slot())
    sig.slot().assign(lambda kind: op.complete(OperationAborted()))
    return sig, op, results


def test_op_holds_work_until_completed(ctx):
    op, results = _op(ctx)
    assert (ctx.outstanding_work, ctx.run_for(0.02)) == (1, 0)
    assert op.complete(None) is True
    assert ctx.outstanding_work == 0
    assert (ctx.run(), results) == (1, [(None,)])


@pytest.mark.parametrize("args", [(None,), (None, "guard")])
def test_complete_passes_args(ctx, args):
    op, results = _op(ctx)
    op.complete(*args)
    ctx.run()
    assert results == [args]


def test_complete_twice_is_noop(ctx):
    op, results = _op(ctx)
    outcomes = [op.complete(None), op.complete(OperationAborted())]
    ctx.run()
    assert outcomes == [True, False]
    assert (results, op.pending) == ([(None,)], False)


def test_shutdown_drops_handler(ctx):
    op, results = _op(ctx)
    op.shutdown()
    assert (ctx.outstanding_work, ctx.run(), results) == (0, 0, [])


def test_complete_clears_slot(ctx):
    sig, op, _ = _cancellable(ctx)
    op.complete(None)
    assert sig.slot().has_handler is False


def test_cancellation_completes_with_aborted(ctx):
    sig, op, results = _cancellable(ctx)
    queue = WaitQueue()
    queue.add(op)
    sig.emit(CancellationType.TOTAL)
    ctx.run()
    assert [is_aborted(err) for (err,) in results] == [True]
    assert len(queue) == 0


def test_queue_keeps_fifo_order(ctx):
    queue, ops, results = _queued(ctx, 3)
    assert list(queue) == ops
    assert queue.first() is ops[0]
    queue.complete_all(None)
    ctx.run()
    assert [i for i, _ in results] == [0, 1, 2]
    assert (len(queue), queue.first()) == (0, None)


def test_completion_unlinks_from_queue(ctx):
    queue, ops, _ = _queued(ctx, 3)
    ops[1].complete(None)
    assert list(queue) == [ops[0], ops[2]]
    assert ops[1] not in queue


def test_remove_and_double_add_errors(ctx):
    queue, (op,), _ = _queued(ctx, 1)
    with pytest.raises(ValueError):
        queue.add(op)
    queue.remove(op)
    with pytest.raises(ValueError):
        queue.remove(op)


def test_abort_all(ctx):
    queue, _, results = _queued(ctx, 4)
    queue.abort_all()
    ctx.run()
    assert [is_aborted(err) for _, err in results] == [True] * 4


def test_take_moves_ops(ctx):
    queue, ops, _ = _queued(ctx, 2)
    taken = queue.take()
    assert (len(queue), list(taken)) == (0, ops)
    ops[0].complete(None)
    assert list(taken) == [ops[1]]


def test_queue_shutdown_drops_everything(ctx):
    queue, ops, results = _queued(ctx, 3)
    queue.shutdown()
    assert (len(queue), ctx.outstanding_work, ctx.run(), results) == (0, 0, 0, [])
    assert not any(op.pending for op in ops)


def test_predicate_op_done(ctx):
    state = {"ready": False}
    op = PredicateOp(ctx, print, lambda: state["ready"])
    before = op.done()
    state["ready"] = True
    assert (before, op.done()) == (False, True)
    op.shutdown()
    assert ctx.outstanding_work == 0
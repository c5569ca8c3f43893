import io

from samsync.bench import PollingCondition, main, run_benchmark, timed
from samsync.condition_variable import ConditionVariable
from samsync.context import IoContext


def test_timed_prints_line():
    out = io.StringIO()
    with timed("sample", out):
        pass
    line = out.getvalue()
    assert line.startswith("Benchmark  sample: ")
    assert line.endswith(" us\n")
    assert line[len("Benchmark  sample: "):-len(" us\n")].isdigit()


def test_polling_condition_waits_for_predicate():
    ctx = IoContext()
    cond = PollingCondition(ctx)
    state = {"ready": False}
    results = []
    cond.async_wait(lambda: state["ready"], results.append)
    ctx.run()
    assert results == []
    assert cond.parked == 1

    state["ready"] = True
    cond.notify_one()
    ctx.restart()
    ctx.run()
    assert results == [None]
    assert cond.parked == 0


def test_polling_condition_notify_all_rechecks_everyone():
    ctx = IoContext()
    cond = PollingCondition(ctx)
    state = {"ready": False}
    results = []
    cond.async_wait(lambda: state["ready"], lambda error: results.append("a"))
    cond.async_wait(lambda: False, lambda error: results.append("never"))
    cond.async_wait(lambda: state["ready"], lambda error: results.append("b"))
    ctx.run()
    state["ready"] = True
    cond.notify_all()
    ctx.restart()
    ctx.run()
    assert results == ["a", "b"]
    assert cond.parked == 1


def test_run_benchmark_counts_agree():
    with IoContext(1) as ctx:
        condvar_count = run_benchmark(ConditionVariable, ctx, 100)
    with IoContext(1) as ctx:
        polling_count = run_benchmark(PollingCondition, ctx, 100)
    assert condvar_count == polling_count == 25


def test_run_benchmark_zero_steps():
    with IoContext() as ctx:
        assert run_benchmark(ConditionVariable, ctx, 0) == 0


def test_main_prints_four_benchmarks(capsys):
    assert main(["--count", "8"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 4
    assert all(line.startswith("Benchmark  ") and line.endswith(" us") for line in lines)
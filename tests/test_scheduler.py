import pytest

from interleave.scheduler import Scheduler
from interleave.threads import ThreadId, ThreadSet


class _Execution:
    def __init__(self):
        self.threads = ThreadSet(0)


def _finish_and_activate(next_id):
    def apply(execution):
        execution.threads.active().set_terminated()
        execution.threads.set_active(next_id)

    return apply


def _active_id():
    return Scheduler.with_execution(lambda e: e.threads.active_id())


def test_single_thread_runs_to_completion():
    execution = _Execution()
    seen = []

    def main():
        seen.append(_active_id())
        Scheduler.with_execution(_finish_and_activate(None))

    Scheduler(2).run(execution, main)
    assert seen == [ThreadId(0, 0)]
    assert execution.threads.is_complete() is True


def test_spawn_and_switch_interleave():
    execution = _Execution()
    seen = []

    def child():
        seen.append(("child", _active_id()))
        Scheduler.with_execution(_finish_and_activate(ThreadId(0, 0)))

    def main():
        seen.append(("main start", _active_id()))
        Scheduler.spawn(child)
        new_id = Scheduler.with_execution(lambda e: e.threads.new_thread())
        seen.append(("spawned", new_id))
        Scheduler.with_execution(lambda e: e.threads.set_active(new_id))
        Scheduler.switch()
        seen.append(("main resumed", _active_id()))
        Scheduler.with_execution(_finish_and_activate(None))

    Scheduler(3).run(execution, main)
    assert seen == [
        ("main start", ThreadId(0, 0)),
        ("spawned", ThreadId(0, 1)),
        ("child", ThreadId(0, 1)),
        ("main resumed", ThreadId(0, 0)),
    ]
    assert len(execution.threads) == 2
    assert execution.threads.is_complete() is True


def test_thread_switching_back_and_forth():
    execution = _Execution()
    seen = []

    def main():
        for step in range(3):
            seen.append((step, _active_id()))
            Scheduler.switch()
        Scheduler.with_execution(_finish_and_activate(None))

    Scheduler(1).run(execution, main)
    assert seen == [(0, ThreadId(0, 0)), (1, ThreadId(0, 0)), (2, ThreadId(0, 0))]
    assert execution.threads.is_complete() is True


def test_exception_propagates():
    execution = _Execution()

    def main():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        Scheduler(1).run(execution, main)


def test_exception_after_switch_propagates():
    execution = _Execution()

    def main():
        Scheduler.switch()
        raise KeyError("later")

    with pytest.raises(KeyError):
        Scheduler(1).run(execution, main)


def test_too_many_threads():
    execution = _Execution()

    def main():
        Scheduler.spawn(lambda: None)
        Scheduler.switch()

    with pytest.raises(RuntimeError):
        Scheduler(1).run(execution, main)


def test_with_execution_outside_model():
    with pytest.raises(RuntimeError, match="outside a model"):
        Scheduler.with_execution(lambda e: e)


def test_spawn_outside_model():
    with pytest.raises(RuntimeError, match="outside a model"):
        Scheduler.spawn(lambda: None)


def test_switch_outside_model():
    with pytest.raises(RuntimeError, match="outside a model"):
        Scheduler.switch()


def test_state_not_visible_after_run():
    execution = _Execution()
    captured = []

    def main():
        captured.append(Scheduler.with_execution(lambda e: e))
        Scheduler.with_execution(_finish_and_activate(None))

    Scheduler(1).run(execution, main)
    assert captured == [execution]
    with pytest.raises(RuntimeError):
        Scheduler.with_execution(lambda e: e)
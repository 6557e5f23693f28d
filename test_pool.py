"""
Tests for the bounded worker pool
"""
import threading
import time

import pytest

from mcmodsync.shared.exceptions import NotFoundError
from mcmodsync.shared.pool import DEFAULT_CONCURRENCY, WorkerPool


def test_default_concurrency_is_ten():
    assert DEFAULT_CONCURRENCY == 10
    assert WorkerPool().concurrency == 10


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError):
        WorkerPool(0)


def test_every_task_runs_exactly_once():
    seen = []
    lock = threading.Lock()

    def handler(task):
        with lock:
            seen.append(task)

    result = WorkerPool(4).run(range(100), handler)

    assert sorted(seen) == list(range(100))
    assert sorted(result.succeeded) == list(range(100))
    assert result.ok


def test_empty_batch():
    result = WorkerPool(3).run([], lambda task: None)
    assert result.ok
    assert result.attempted == 0


def test_at_most_concurrency_tasks_in_flight():
    """10 blocking tasks on 3 workers: never more than 3 running at once"""
    release = threading.Event()
    lock = threading.Lock()
    in_flight = 0
    peak = 0
    three_started = threading.Semaphore(0)

    def handler(task):
        nonlocal in_flight, peak
        with lock:
            in_flight += 1
            peak = max(peak, in_flight)
        three_started.release()
        release.wait(timeout=10)
        with lock:
            in_flight -= 1

    result_box = {}
    runner = threading.Thread(
        target=lambda: result_box.setdefault("result", WorkerPool(3).run(range(10), handler))
    )
    runner.start()

    for _ in range(3):
        assert three_started.acquire(timeout=5)
    time.sleep(0.1)
    with lock:
        assert in_flight == 3

    release.set()
    runner.join(timeout=10)

    assert not runner.is_alive()
    assert peak == 3
    assert len(result_box["result"].succeeded) == 10


def test_failure_of_one_task_does_not_stop_the_batch():
    """Task #3 fails like a 404; tasks 1, 2, 4 and 5 still succeed"""
    def handler(task):
        if task == 3:
            raise NotFoundError("mod3.jar not found on server")

    result = WorkerPool(2).run([1, 2, 3, 4, 5], handler)

    assert sorted(result.succeeded) == [1, 2, 4, 5]
    assert len(result.failed) == 1
    assert result.failed[0].task == 3
    assert isinstance(result.failed[0].error, NotFoundError)
    assert not result.ok


def test_failed_tasks_are_not_retried():
    calls = []
    lock = threading.Lock()

    def handler(task):
        with lock:
            calls.append(task)
        raise OSError("disk full")

    result = WorkerPool(3).run(["a", "b", "c"], handler)

    assert sorted(calls) == ["a", "b", "c"]
    assert len(result.failed) == 3


def test_cancel_event_skips_remaining_tasks():
    cancel = threading.Event()
    done = []

    def handler(task):
        done.append(task)
        if task == 2:
            cancel.set()

    result = WorkerPool(1).run([1, 2, 3, 4], handler, cancel_event=cancel)

    assert done == [1, 2]
    assert result.cancelled == [3, 4]
    assert not result.ok


def test_on_result_reports_each_attempt():
    outcomes = {}
    lock = threading.Lock()

    def handler(task):
        if task % 2:
            raise RuntimeError(f"odd {task}")

    def on_result(task, error):
        with lock:
            outcomes[task] = error

    WorkerPool(3).run(range(6), handler, on_result=on_result)

    assert sorted(outcomes) == list(range(6))
    assert outcomes[0] is None
    assert isinstance(outcomes[1], RuntimeError)


def test_broken_result_callback_does_not_lose_tasks():
    def on_result(task, error):
        raise ValueError("callback bug")

    result = WorkerPool(2).run(range(5), lambda task: None, on_result=on_result)

    assert sorted(result.succeeded) == list(range(5))

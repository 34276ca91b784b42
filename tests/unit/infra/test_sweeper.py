"""Unit tests for the background sweep job."""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager

import pytest

from authcore.infra.revocation.sweeper import SweepJob


def test_run_once_returns_task_result():
    job = SweepJob(lambda: 3, interval=60)

    assert job.run_once() == 3
    assert not job.is_running


def test_run_once_enters_context_factory():
    entered: list[str] = []

    @contextmanager
    def ctx():
        entered.append("in")
        yield
        entered.append("out")

    job = SweepJob(lambda: 0, interval=60, context_factory=ctx)
    job.run_once()

    assert entered == ["in", "out"]


def test_started_job_runs_periodically_until_stopped():
    calls: list[int] = []
    ran_twice = threading.Event()

    def task() -> int:
        calls.append(1)
        if len(calls) >= 2:
            ran_twice.set()
        return 0

    job = SweepJob(task, interval=0.01, name="test-sweep")
    job.start()
    try:
        assert ran_twice.wait(2.0)
        assert job.is_running
    finally:
        job.stop()

    assert not job.is_running


def test_stop_interrupts_a_sleeping_job():
    job = SweepJob(lambda: 0, interval=3600)
    job.start()

    started = time.monotonic()
    job.stop(timeout=2.0)

    assert time.monotonic() - started < 2.0
    assert not job.is_running


def test_failing_run_is_logged_and_loop_continues(caplog):
    caplog.set_level(logging.ERROR, logger="authcore.infra.revocation.sweeper")
    calls: list[int] = []
    recovered = threading.Event()

    def task() -> int:
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("backend down")
        recovered.set()
        return 0

    job = SweepJob(task, interval=0.01)
    job.start()
    try:
        assert recovered.wait(2.0)
    finally:
        job.stop()

    assert any("sweep job run failed" in r.getMessage() for r in caplog.records)


def test_start_twice_keeps_single_thread():
    job = SweepJob(lambda: 0, interval=3600)
    job.start()
    try:
        first = job._thread
        job.start()
        assert job._thread is first
    finally:
        job.stop()


def test_context_manager_starts_and_stops():
    with SweepJob(lambda: 0, interval=3600) as job:
        assert job.is_running
    assert not job.is_running


def test_job_can_restart_after_stop():
    job = SweepJob(lambda: 0, interval=3600)
    job.start()
    job.stop()
    job.start()
    try:
        assert job.is_running
    finally:
        job.stop()


def test_restart_after_stop_timeout_keeps_single_loop(caplog):
    entered = threading.Event()
    release = threading.Event()
    runners: list[threading.Thread] = []

    def task() -> int:
        runners.append(threading.current_thread())
        entered.set()
        release.wait(2)
        return 0

    job = SweepJob(task, interval=0.01)
    job.start()
    assert entered.wait(2)
    first = runners[0]

    caplog.set_level(logging.WARNING, logger="authcore.infra.revocation.sweeper")
    job.stop(timeout=0.01)
    assert first.is_alive()
    assert any("still finishing" in r.getMessage() for r in caplog.records)

    job.start()
    try:
        release.set()
        first.join(2)
        # The stopped loop exits after its blocked run instead of resuming
        assert not first.is_alive()
        assert job.is_running
    finally:
        job.stop()


@pytest.mark.parametrize("interval", [0, -1])
def test_non_positive_interval_is_refused(interval):
    with pytest.raises(ValueError):
        SweepJob(lambda: 0, interval=interval)

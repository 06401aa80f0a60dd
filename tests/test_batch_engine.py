"""Tests for batching and retries."""

import argparse
import sys
import threading
import time

import pytest

import batch_engine
import png_to_webp


def test_run_in_batches_keeps_order_and_results():
    outcomes = batch_engine.run_in_batches([3, 1, 2], lambda x: x * 10, batch_size=2)
    assert [o.item for o in outcomes] == [3, 1, 2]
    assert [o.result for o in outcomes] == [30, 10, 20]
    assert all(o.ok for o in outcomes)


def test_run_in_batches_captures_worker_errors():
    def worker(x):
        if x == 2:
            raise RuntimeError("bad item")
        return x

    outcomes = batch_engine.run_in_batches([1, 2, 3], worker, batch_size=3)
    assert [o.ok for o in outcomes] == [True, False, True]
    assert outcomes[1].error == "bad item"
    assert outcomes[1].result is None


def test_run_in_batches_empty_and_invalid():
    assert batch_engine.run_in_batches([], lambda x: x, batch_size=4) == []
    with pytest.raises(ValueError):
        batch_engine.run_in_batches([1], lambda x: x, batch_size=0)


def test_run_in_batches_bounds_concurrency_and_waits_per_batch():
    lock = threading.Lock()
    active = 0
    peak = 0
    finished = []
    started_batches = []

    def worker(x):
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
            # Every item of earlier batches must be done before this one starts
            started_batches.append((x, len(finished)))
        time.sleep(0.02)
        with lock:
            active -= 1
            finished.append(x)
        return x

    batch_engine.run_in_batches(list(range(7)), worker, batch_size=3)

    assert peak <= 3
    for item, done_before in started_batches:
        assert done_before >= (item // 3) * 3


def test_run_in_batches_prints_progress(monkeypatch):
    lines = []
    monkeypatch.setattr(batch_engine.console, "print", lambda msg, **kw: lines.append(msg))
    batch_engine.run_in_batches(list(range(5)), lambda x: x, batch_size=2, label="emojis")
    progress = [line for line in lines if "Progress" in line]
    assert len(progress) == 3
    assert "2/5 emojis" in progress[0]
    assert "5/5 emojis" in progress[-1]


def test_retry_call_succeeds_after_failures():
    calls = []
    retries = []

    def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise ConnectionError(f"attempt {len(calls)}")
        return "ok"

    result = batch_engine.retry_call(
        flaky, max_retries=3, delay=0,
        on_retry=lambda attempt, total, exc: retries.append((attempt, total, str(exc))),
    )
    assert result == "ok"
    assert len(calls) == 3
    assert retries == [(1, 3, "attempt 1"), (2, 3, "attempt 2")]


def test_retry_call_reraises_last_error():
    calls = []

    def always_fails():
        calls.append(1)
        raise ValueError(f"fail {len(calls)}")

    with pytest.raises(ValueError, match="fail 3"):
        batch_engine.retry_call(always_fails, max_retries=2, delay=0)
    assert len(calls) == 3


def test_retry_call_zero_retries_is_single_attempt():
    calls = []

    def fails():
        calls.append(1)
        raise OSError("nope")

    with pytest.raises(OSError):
        batch_engine.retry_call(fails, max_retries=0, delay=0)
    assert len(calls) == 1


def test_positive_int_rejects_zero_batch_size():
    assert batch_engine.positive_int("4") == 4
    with pytest.raises(argparse.ArgumentTypeError):
        batch_engine.positive_int("0")
    with pytest.raises(argparse.ArgumentTypeError):
        batch_engine.positive_int("-2")


def test_concurrency_flag_rejects_zero(monkeypatch, capsys):
    monkeypatch.setattr(sys, "argv", ["emoji-png-to-webp", "--concurrency", "0"])
    with pytest.raises(SystemExit) as info:
        png_to_webp.main()
    assert info.value.code == 2
    assert "must be >= 1" in capsys.readouterr().err

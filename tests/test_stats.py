"""Tests for replay stats and the periodic reporter."""

import asyncio
import logging

import pytest

from vlt.models import DispatchResult
from vlt.stats import LATENCY_WINDOW, ReplayStats, StatsReporter, format_summary


def result(ms, status=200, error=None):
    return DispatchResult(method="GET", display_url="http://a/", elapsed_ms=ms,
                          status_code=status, error=error)


def test_empty_summary():
    s = ReplayStats().summary()
    assert s["dispatched"] == 0
    assert s["latency_avg_ms"] == 0.0
    assert s["status_classes"] == {}


def test_record_results():
    stats = ReplayStats()
    stats.record(result(10))
    stats.record(result(20, status=302))
    stats.record(result(30, status=None, error="Connection refused"))
    stats.record_invalid()

    s = stats.summary()
    assert s["dispatched"] == 3
    assert s["responses"] == 2
    assert s["errors"] == 1
    assert s["invalid"] == 1
    assert s["status_classes"] == {"2xx": 1, "3xx": 1}
    assert s["latency_avg_ms"] == 20.0
    assert s["latency_max_ms"] == 30


def test_percentiles():
    stats = ReplayStats()
    for i in range(1, 101):
        stats.record(result(i))
    s = stats.summary()
    assert s["latency_p50_ms"] == pytest.approx(50.5, abs=1.0)
    assert s["latency_p95_ms"] == pytest.approx(95.5, abs=1.0)
    assert s["latency_p99_ms"] == pytest.approx(99.5, abs=1.0)


def test_format_summary():
    stats = ReplayStats()
    stats.record(result(5))
    line = format_summary(stats.summary())
    assert line.startswith("dispatched=1 errors=0 invalid=0 abandoned=0")
    assert "[2xx=1]" in line


@pytest.mark.asyncio
async def test_reporter_logs_periodically(caplog):
    caplog.set_level(logging.INFO, logger="vlt.stats")
    reporter = StatsReporter(ReplayStats(), interval=0.01)
    reporter.start()
    await asyncio.sleep(0.05)
    await reporter.stop()
    assert "[stats] dispatched=0" in caplog.text


@pytest.mark.asyncio
async def test_reporter_disabled():
    reporter = StatsReporter(ReplayStats(), interval=0)
    reporter.start()
    await reporter.stop()


def test_latency_window_bounded():
    stats = ReplayStats(latency_window=100)
    for i in range(1, 1001):
        stats.record(result(i))
    s = stats.summary()
    assert len(stats.latencies) == 100
    assert s["dispatched"] == 1000
    assert s["latency_max_ms"] == 1000
    assert s["latency_avg_ms"] == 950.5


def test_default_window_bounded():
    stats = ReplayStats()
    for _ in range(LATENCY_WINDOW + 500):
        stats.record(result(5))
    assert len(stats.latencies) == LATENCY_WINDOW

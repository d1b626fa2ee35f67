"""Replay counters, latency percentiles, and a periodic summary reporter."""

import asyncio
import logging
import time
from collections import deque

from vlt.models import DispatchResult

logger = logging.getLogger(__name__)

LATENCY_WINDOW = 10000


def _percentile(data: list[int], p: float) -> float:
    k = (len(data) - 1) * (p / 100.0)
    f = int(k)
    c = f + 1
    if c >= len(data):
        return float(data[-1])
    return data[f] + (k - f) * (data[c] - data[f])


class ReplayStats:
    """Counters for one replay run.

    Only touched from the event loop thread, so no locking is needed.
    Latency percentiles cover the last *latency_window* requests.
    """

    def __init__(self, latency_window: int = LATENCY_WINDOW):
        # Most recent latencies in ms; the stream runs indefinitely.
        self.latencies: deque[int] = deque(maxlen=latency_window)
        self.dispatched = 0
        self.responses = 0
        self.errors = 0
        self.invalid = 0
        self.abandoned = 0
        self.malformed_headers = 0
        self.status_classes: dict[str, int] = {}
        self.start_time = time.monotonic()

    def record(self, result: DispatchResult):
        self.dispatched += 1
        self.latencies.append(result.elapsed_ms)
        if result.ok:
            self.responses += 1
            bucket = f"{result.status_code // 100}xx"
            self.status_classes[bucket] = self.status_classes.get(bucket, 0) + 1
        else:
            self.errors += 1

    def record_invalid(self):
        self.invalid += 1

    def summary(self) -> dict:
        duration = max(time.monotonic() - self.start_time, 0.001)
        result = {
            "dispatched": self.dispatched,
            "responses": self.responses,
            "errors": self.errors,
            "invalid": self.invalid,
            "abandoned": self.abandoned,
            "malformed_headers": self.malformed_headers,
            "status_classes": dict(sorted(self.status_classes.items())),
            "rps": round(self.dispatched / duration, 1),
            "latency_avg_ms": 0.0,
            "latency_p50_ms": 0.0,
            "latency_p95_ms": 0.0,
            "latency_p99_ms": 0.0,
            "latency_max_ms": 0,
        }
        if self.latencies:
            sorted_lat = sorted(self.latencies)
            result.update(
                latency_avg_ms=round(sum(sorted_lat) / len(sorted_lat), 1),
                latency_p50_ms=round(_percentile(sorted_lat, 50), 1),
                latency_p95_ms=round(_percentile(sorted_lat, 95), 1),
                latency_p99_ms=round(_percentile(sorted_lat, 99), 1),
                latency_max_ms=sorted_lat[-1],
            )
        return result


def format_summary(summary: dict) -> str:
    statuses = " ".join(f"{k}={v}" for k, v in summary["status_classes"].items())
    return (
        f"dispatched={summary['dispatched']} errors={summary['errors']} "
        f"invalid={summary['invalid']} abandoned={summary['abandoned']} "
        f"rps={summary['rps']} avg={summary['latency_avg_ms']}ms "
        f"p95={summary['latency_p95_ms']}ms max={summary['latency_max_ms']}ms"
        + (f" [{statuses}]" if statuses else "")
    )


class StatsReporter:
    """Background task that logs a stats line every *interval* seconds."""

    def __init__(self, stats: ReplayStats, interval: float):
        self._stats = stats
        self._interval = interval
        self._task: asyncio.Task | None = None

    def start(self):
        if self._interval > 0:
            self._task = asyncio.create_task(self._report_loop())

    async def stop(self):
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _report_loop(self):
        while True:
            await asyncio.sleep(self._interval)
            logger.info("[stats] %s", format_summary(self._stats.summary()))

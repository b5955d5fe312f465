"""
Reader statistics and their periodic report.

The parser records one sample per completed block; a background task
periodically hands a snapshot of the counters to a sink (by default the
``firehose_reader.console.stats`` logger). Nothing here can change the
outcome of parsing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable
from threading import Lock
from typing import Any

from ..codec.types import BlockRef

logger = logging.getLogger(__name__)

StatsSink = Callable[[dict[str, Any]], None]
Clock = Callable[[], float]


class RateCounter:
    """Per-second rate of increments over a sliding window."""

    def __init__(self, unit: str, window: float = 30.0, clock: Clock = time.monotonic) -> None:
        if window <= 0:
            raise ValueError(f"window must be > 0, got {window}")
        self.unit = unit
        self.window = window
        self._clock = clock
        self._samples: deque[tuple[float, int]] = deque()
        self._total = 0
        self._lock = Lock()

    def inc(self) -> None:
        self.inc_by(1)

    def inc_by(self, value: int) -> None:
        with self._lock:
            now = self._clock()
            self._samples.append((now, value))
            self._total += value
            self._expire(now)

    def _expire(self, now: float) -> None:
        horizon = now - self.window
        while self._samples and self._samples[0][0] <= horizon:
            self._samples.popleft()

    @property
    def total(self) -> int:
        return self._total

    def rate(self) -> float:
        """Increments per second over the window."""
        with self._lock:
            self._expire(self._clock())
            count = sum(value for _, value in self._samples)
        return count / self.window

    def __str__(self) -> str:
        return f"{self.rate():.2f} {self.unit}/s (over {self.window:g}s)"


class AvgDurationCounter:
    """Average of durations recorded within a sliding window."""

    def __init__(
        self,
        unit: str,
        window: float = 5.0,
        scale: float = 1000.0,
        clock: Clock = time.monotonic,
    ) -> None:
        """
        Args:
            unit: Label for the reported value, e.g. 'ms/block'
            window: Seconds of samples to average
            scale: Multiplier from seconds to the reported unit
            clock: Monotonic time source
        """
        if window <= 0:
            raise ValueError(f"window must be > 0, got {window}")
        self.unit = unit
        self.window = window
        self.scale = scale
        self._clock = clock
        self._samples: deque[tuple[float, float]] = deque()
        self._lock = Lock()

    def add(self, seconds: float) -> None:
        with self._lock:
            now = self._clock()
            self._samples.append((now, seconds))
            self._expire(now)

    def _expire(self, now: float) -> None:
        horizon = now - self.window
        while self._samples and self._samples[0][0] <= horizon:
            self._samples.popleft()

    def average(self) -> float:
        """Average duration in the reported unit, 0 when there are no samples."""
        with self._lock:
            self._expire(self._clock())
            if not self._samples:
                return 0.0
            total = sum(seconds for _, seconds in self._samples)
            return total / len(self._samples) * self.scale

    def __str__(self) -> str:
        return f"{self.average():.3f} {self.unit} (over {self.window:g}s)"


def log_stats(snapshot: dict[str, Any]) -> None:
    """Default sink: one structured INFO record per report."""
    logger.info("reader node statistics", extra=snapshot)


class ReaderStats:
    """Counters describing reader throughput."""

    def __init__(
        self,
        rate_window: float = 30.0,
        parse_time_window: float = 5.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self.block_rate = RateCounter("blocks", rate_window, clock)
        self.transaction_rate = RateCounter("trxs", rate_window, clock)
        self.block_average_parse_time = AvgDurationCounter("ms/block", parse_time_window, clock=clock)
        self._last_block = BlockRef()
        self._lock = Lock()
        self._report_task: asyncio.Task[None] | None = None

    @property
    def last_block(self) -> BlockRef:
        return self._last_block

    def record_block(self, ref: BlockRef, transaction_count: int, elapsed: float) -> None:
        """Account for one completed block.

        Args:
            ref: The completed block
            transaction_count: Transactions accumulated in the block
            elapsed: Seconds between BLOCK_START and BLOCK_END
        """
        self.block_rate.inc()
        self.transaction_rate.inc_by(transaction_count)
        self.block_average_parse_time.add(elapsed)
        with self._lock:
            self._last_block = ref

    def snapshot(self) -> dict[str, Any]:
        """Current counter values as structured fields."""
        with self._lock:
            last_block = self._last_block
        return {
            "block_rate": round(self.block_rate.rate(), 3),
            "trx_rate": round(self.transaction_rate.rate(), 3),
            "block_average_parse_time_ms": round(self.block_average_parse_time.average(), 3),
            "last_block_num": last_block.num,
            "last_block_id": last_block.id,
            "total_blocks": self.block_rate.total,
            "total_transactions": self.transaction_rate.total,
        }

    @property
    def is_reporting(self) -> bool:
        return self._report_task is not None and not self._report_task.done()

    def start_periodic_log(self, interval: float, sink: StatsSink | None = None) -> None:
        """Start reporting a snapshot to ``sink`` every ``interval`` seconds.

        Must be called with a running event loop. Calling it again while a
        report task is alive does nothing.
        """
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        if self.is_reporting:
            return

        emit = sink or log_stats

        async def report_loop() -> None:
            while True:
                await asyncio.sleep(interval)
                try:
                    emit(self.snapshot())
                except Exception as e:
                    logger.warning(f"Statistics sink failed: {e}")

        self._report_task = asyncio.get_running_loop().create_task(
            report_loop(), name="firehose-reader-stats"
        )

    def stop_periodic_log(self) -> None:
        """Stop the periodic report.

        Idempotent, safe when never started, and does not wait for the task.
        """
        task, self._report_task = self._report_task, None
        if task is not None and not task.done():
            task.cancel()

"""Aggregates per-file results into summary statistics.

``SummaryStats`` is an immutable fold: ``fold`` adds one result, ``merge``
combines two partial aggregates, and ``finalize`` computes the average
once the stream is exhausted. ``ResultAggregator`` keeps the ordered
result list and serializes updates coming from worker threads.
"""

import dataclasses
import logging
import threading
from typing import List, Tuple

from qrbench.models import FileResult

log = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class SummaryStats:
    total: int = 0
    success: int = 0
    failed: int = 0
    with_qr: int = 0
    total_qr: int = 0
    duration_sum: float = 0.0  # seconds, successful files only
    avg_duration: float = 0.0  # seconds, set by finalize()

    def fold(self, result: FileResult) -> "SummaryStats":
        ok = result.success
        return dataclasses.replace(
            self,
            total=self.total + 1,
            success=self.success + (1 if ok else 0),
            failed=self.failed + (0 if ok else 1),
            with_qr=self.with_qr + (1 if ok and result.qr_count > 0 else 0),
            total_qr=self.total_qr + result.qr_count,
            duration_sum=self.duration_sum + (result.total if ok else 0.0),
        )

    def merge(self, other: "SummaryStats") -> "SummaryStats":
        """Field-wise sum of two partial aggregates; the average is left for finalize()."""
        return SummaryStats(
            total=self.total + other.total,
            success=self.success + other.success,
            failed=self.failed + other.failed,
            with_qr=self.with_qr + other.with_qr,
            total_qr=self.total_qr + other.total_qr,
            duration_sum=self.duration_sum + other.duration_sum,
        )

    def finalize(self) -> "SummaryStats":
        avg = self.duration_sum / self.success if self.success else 0.0
        return dataclasses.replace(self, avg_duration=avg)

    @property
    def avg_ms(self) -> float:
        return self.avg_duration * 1000.0


class ResultAggregator:
    def __init__(self):
        self._lock = threading.Lock()
        self._results: List[FileResult] = []
        self._stats = SummaryStats()

    def accumulate(self, result: FileResult):
        with self._lock:
            self._results.append(result)
            self._stats = self._stats.fold(result)

    def finalize(self) -> SummaryStats:
        with self._lock:
            stats = self._stats.finalize()
        log.info(
            "Scan complete: %d files, %d succeeded, %d failed, %d QR codes",
            stats.total, stats.success, stats.failed, stats.total_qr,
        )
        return stats

    @property
    def stats(self) -> SummaryStats:
        """Running totals; the average is only meaningful after finalize()."""
        with self._lock:
            return self._stats

    @property
    def results(self) -> Tuple[FileResult, ...]:
        with self._lock:
            return tuple(self._results)

    def __len__(self) -> int:
        with self._lock:
            return len(self._results)

"""Feeds candidates through the pipeline on a background thread pool."""

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from qrbench.models import FileResult, ImageCandidate
from qrbench.pipeline import ImagePipeline
from qrbench.stats import ResultAggregator

log = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, FileResult], None]


class ScanInterrupted(Exception):
    """Raised when the scan is interrupted; carries the partial aggregate."""

    def __init__(self, aggregator: ResultAggregator):
        super().__init__(f"Scan interrupted after {len(aggregator)} files")
        self.aggregator = aggregator


def default_workers() -> int:
    # Decoding and detection release the GIL inside OpenCV/Pillow
    return min(os.cpu_count() or 1, 8)


def run_scan(
    candidates: Sequence[ImageCandidate],
    pipeline: ImagePipeline,
    aggregator: Optional[ResultAggregator] = None,
    workers: Optional[int] = None,
    on_result: Optional[ProgressCallback] = None,
) -> ResultAggregator:
    """Processes every candidate and accumulates results in scan order.

    Work runs concurrently but results are consumed in submission order on
    the calling thread, so the report order matches the scanner order.
    """
    aggregator = aggregator if aggregator is not None else ResultAggregator()
    max_workers = workers if workers and workers > 0 else default_workers()
    total = len(candidates)
    log.info("Processing %d files with %d workers", total, max_workers)

    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="qrbench")
    futures: List[Future] = []
    try:
        futures = [executor.submit(pipeline.process, candidate) for candidate in candidates]
        for index, future in enumerate(futures):
            result = future.result()
            aggregator.accumulate(result)
            if on_result:
                on_result(index, total, result)
    except KeyboardInterrupt:
        cancelled = sum(1 for f in futures if f.cancel())
        log.warning("Interrupted; cancelled %d pending files", cancelled)
        raise ScanInterrupted(aggregator)
    finally:
        # Every future is done unless we got here through an exception
        executor.shutdown(wait=False, cancel_futures=True)
    return aggregator

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Optional, Tuple

from ..config import SETTINGS

RowBand = Tuple[int, int]


def row_bands(height: int, width: int, workers: Optional[int] = None) -> List[RowBand]:
    """Split ``range(height)`` into contiguous bands, one per worker.

    With ``workers`` unset the configured worker count is used, and images
    below ``SETTINGS.parallel_min_pixels`` stay in a single band since thread
    start-up would cost more than it saves.
    """
    if workers is None:
        if height * width < SETTINGS.parallel_min_pixels:
            return [(0, height)]
        workers = SETTINGS.resolved_workers()
    workers = min(max(1, workers), max(1, height))
    chunk = (height + workers - 1) // workers
    return [(start, min(start + chunk, height)) for start in range(0, height, chunk)]


def run_bands(worker: Callable[[int, int], None], bands: List[RowBand]) -> None:
    """Run ``worker(lo, hi)`` for every band; numpy releases the GIL inside."""
    if len(bands) == 1:
        worker(*bands[0])
        return
    with ThreadPoolExecutor(max_workers=len(bands)) as pool:
        futures: List[Future[None]] = [pool.submit(worker, lo, hi) for lo, hi in bands]
        for fut in futures:
            fut.result()

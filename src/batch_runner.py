"""
Batch driver with a memory ceiling.

Large row files are matched in batches of BATCH_SIZE rows against one shared
index. Process RSS is checked every MEMORY_CHECK_INTERVAL rows. Above the
ceiling the run stops and MemoryLimitExceeded carries everything matched so
far, so the caller can still write partial output.
"""

import gc
import logging
import os
from typing import Callable, List, Mapping, Optional, Sequence

import psutil

from catalog import CatalogRecord
from matcher import (
    DEFAULT_THRESHOLD,
    MATCH_STATUS_MATCHED,
    MODE_HEURISTIC,
    MatchConfigError,
    MatchProgress,
    MatchResult,
    build_match_index,
    match_rows,
    validate_config,
)
from scoring import ScoringConfig

logger = logging.getLogger(__name__)

BATCH_SIZE = 500
MEMORY_CHECK_INTERVAL = 100
MAX_MEMORY_MB = 512


class MemoryLimitExceeded(RuntimeError):
    """Resident memory crossed the ceiling; .results holds the rows matched so far."""

    def __init__(self, results: List[MatchResult], rss_mb: float, limit_mb: float):
        super().__init__(
            f"Memory usage {rss_mb:.0f}MB exceeds {limit_mb:.0f}MB after {len(results)} rows"
        )
        self.results = results
        self.rss_mb = rss_mb
        self.limit_mb = limit_mb


def current_rss_mb() -> float:
    """Resident set size of this process in MB."""
    return psutil.Process(os.getpid()).memory_info().rss / 1024 / 1024


def run_in_batches(
    rows: Sequence[Mapping],
    catalog: Sequence[CatalogRecord],
    match_columns: Sequence[str],
    mode: str = MODE_HEURISTIC,
    threshold: float = DEFAULT_THRESHOLD,
    progress_callback: Optional[Callable[[MatchProgress], None]] = None,
    config: Optional[ScoringConfig] = None,
    batch_size: int = BATCH_SIZE,
    max_memory_mb: float = MAX_MEMORY_MB,
    memory_check_interval: int = MEMORY_CHECK_INTERVAL,
    memory_probe: Callable[[], float] = current_rss_mb,
) -> List[MatchResult]:
    """
    Match rows batch by batch with one index built up front.

    Row indices stay continuous across batches. Progress reports count rows
    over the whole run, not per batch.

    Raises:
        MatchConfigError: bad configuration, before any row is matched
        MemoryLimitExceeded: RSS above max_memory_mb at a check point
    """
    if batch_size < 1:
        raise MatchConfigError(f"Batch size must be at least 1, got {batch_size}")
    validate_config(catalog, match_columns, mode, threshold)

    rows = list(rows)
    total = len(rows)
    index = build_match_index(catalog, mode)
    chunk_size = max(1, min(batch_size, memory_check_interval))

    results: List[MatchResult] = []
    matched_before = 0

    def relay(progress: MatchProgress):
        # match_rows counts within one chunk; report over the whole run
        if progress_callback:
            progress_callback(MatchProgress(
                offset + progress.processed, total, matched_before + progress.matched, progress.digest,
            ))

    for batch_start in range(0, total, batch_size):
        batch_end = min(batch_start + batch_size, total)
        logger.info("Batch %d-%d of %d rows", batch_start + 1, batch_end, total)

        for offset in range(batch_start, batch_end, chunk_size):
            chunk = rows[offset:min(offset + chunk_size, batch_end)]
            chunk_results = match_rows(
                chunk, catalog, match_columns,
                mode=mode, threshold=threshold, progress_callback=relay,
                index=index, config=config, row_offset=offset,
            )
            results.extend(chunk_results)
            matched_before += sum(1 for r in chunk_results if r.status == MATCH_STATUS_MATCHED)

            rss_mb = memory_probe()
            logger.debug("Memory after %d rows: %.1fMB", len(results), rss_mb)
            if rss_mb > max_memory_mb:
                logger.error(
                    "Aborting: memory %.1fMB above %.0fMB after %d/%d rows",
                    rss_mb, max_memory_mb, len(results), total,
                )
                raise MemoryLimitExceeded(list(results), rss_mb, max_memory_mb)

        gc.collect()

    return results

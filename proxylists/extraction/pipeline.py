"""Parallel chunked extraction of categorised proxy lists.

The IPv4 row table is split into fixed-size chunks of row indices. Each chunk is
decoded and categorised on a worker into a private ``BucketAccumulator``, then
unioned into one shared accumulator under a lock. Once every chunk has joined,
the shared accumulator is drained into sorted lists, so the output is fully
determined by the database contents regardless of chunk completion order.

Example:
    >>> from proxylists.extraction.pipeline import ChunkedAggregationPipeline
    >>> from proxylists.settings import ExtractionSettings
    >>> pipeline = ChunkedAggregationPipeline(
    ...     "IP2PROXY-LITE-PX10.BIN",
    ...     ExtractionSettings(executor="thread", max_workers=4),
    ... )
    >>> lists = pipeline.run()
    >>> print(len(lists["ip2proxy_vpn"].addresses))
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..database.fields import FieldResolver
from ..database.models import DatabaseHeader
from ..database.records import RecordReader
from ..database.view import BinaryDatabaseView
from ..errors import AggregationLockError, ExtractionCancelledError, ExtractionTimeoutError
from ..settings import ExtractionSettings
from ..status_emitter import StatusEmitter
from .assembler import ListData
from .categories import CATEGORIES, BucketAccumulator, CategoryMatcher, CategoryPattern

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def partition(record_count: int, chunk_size: int) -> List[Tuple[int, int]]:
    """Split ``[0, record_count)`` into consecutive ``(start, end)`` chunks; the last may be shorter."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    return [(start, min(start + chunk_size, record_count)) for start in range(0, record_count, chunk_size)]


@dataclass(slots=True)
class ExtractionMetrics:
    """Telemetry emitted while processing chunks."""

    source: str
    database_type: int = 0
    records_declared: int = 0
    chunks_total: int = 0
    chunks_completed: int = 0
    rows_read: int = 0
    rows_skipped: int = 0
    rows_matched: int = 0
    buckets_populated: int = 0
    duration_seconds: float = 0.0


@dataclass(slots=True)
class ChunkResult:
    """Private accumulator and row counters of one processed chunk."""

    start: int
    end: int
    accumulator: BucketAccumulator
    rows_read: int = 0
    rows_skipped: int = 0
    rows_matched: int = 0
    merged: bool = False
    skipped: bool = False


class ChunkExtractor:
    """Decode and categorise a range of rows from one database view."""

    def __init__(self, view: BinaryDatabaseView, matcher: CategoryMatcher) -> None:
        self.reader = RecordReader(view)
        self.resolver = FieldResolver(view)
        self.matcher = matcher
        self.bucket_names = tuple(category.bucket for category in matcher.categories)

    def extract(self, start: int, end: int) -> ChunkResult:
        result = ChunkResult(start=start, end=end, accumulator=BucketAccumulator(self.bucket_names))
        for index in range(start, end):
            span = self.reader.read_row(index)
            if span is None:
                result.rows_skipped += 1
                continue
            if span.ip_to <= span.ip_from:
                logger.debug(f"Skipping row {index}: empty span {span.ip_from}-{span.ip_to}")
                result.rows_skipped += 1
                continue
            result.rows_read += 1
            fields = self.resolver.resolve(self.reader.row_offset(index))
            if self.matcher.categorize(span, fields, result.accumulator):
                result.rows_matched += 1
        return result


# Per-process state for ProcessPoolExecutor workers. The view stays open for the
# lifetime of the worker process.
_process_extractor: Optional[ChunkExtractor] = None


def _init_process_worker(database_path: str, categories: Tuple[CategoryPattern, ...]) -> None:
    global _process_extractor
    view = BinaryDatabaseView.open(database_path)
    _process_extractor = ChunkExtractor(view, CategoryMatcher(categories))


def _extract_in_process(start: int, end: int) -> ChunkResult:
    if _process_extractor is None:
        raise RuntimeError("process worker was not initialized")
    return _process_extractor.extract(start, end)


class ChunkedAggregationPipeline:
    """Extract deduplicated, sorted per-bucket lists from a database file.

    Thread Safety:
        The shared accumulator is only touched inside ``_merge`` while holding
        ``_lock`` and is drained after every chunk has joined. ``cancel()`` may be
        called from any thread.

    Attributes:
        database_path: Database file to read
        settings: Chunking, pool and timeout configuration
        metrics: Counters of the most recent run (None before the first run)
    """

    def __init__(
        self,
        database_path: str | Path,
        settings: Optional[ExtractionSettings] = None,
        *,
        categories: Iterable[CategoryPattern] = CATEGORIES,
        progress_callback: Optional[ProgressCallback] = None,
        status_emitter: Optional[StatusEmitter] = None,
    ) -> None:
        self.database_path = Path(database_path)
        self.settings = settings or ExtractionSettings()
        self.settings.validate()
        self.matcher = CategoryMatcher(categories)
        self.progress_callback = progress_callback
        self.status_emitter = status_emitter
        self.metrics: Optional[ExtractionMetrics] = None
        self._lock = threading.Lock()
        self._cancel_event = threading.Event()
        # Set when a run fails so queued thread chunks return without work.
        self._abort_event = threading.Event()
        self._shared = BucketAccumulator(())

    def cancel(self) -> None:
        """Request that the running extraction stop before its next chunk."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def run(self) -> Dict[str, ListData]:
        """Run the extraction and return sorted lists for every non-empty bucket.

        Raises:
            DatabaseOpenError: If the database cannot be opened or mapped
            ExtractionTimeoutError: If ``settings.timeout_seconds`` elapses first
            ExtractionCancelledError: If ``cancel()`` was called during the run
            AggregationLockError: If a merge cannot acquire the shared lock
        """
        started = time.perf_counter()
        self._abort_event.clear()
        with BinaryDatabaseView.open(self.database_path) as view:
            header = view.header
            self._log_header(header)
            reader = RecordReader(view)
            readable = reader.readable_row_count()
            if not reader.declared_table_fits():
                logger.warning(
                    f"Declared IPv4 table ends at byte {header.table_end()} but {self.database_path} "
                    f"is {view.size} bytes; skipping {header.ipv4_count - readable} rows past the end"
                )

            chunks = partition(readable, self.settings.chunk_size)
            metrics = ExtractionMetrics(
                source=str(self.database_path),
                database_type=header.database_type,
                records_declared=header.ipv4_count,
                chunks_total=len(chunks),
                rows_skipped=header.ipv4_count - readable,
            )
            self.metrics = metrics
            self._shared = BucketAccumulator(category.bucket for category in self.matcher.categories)

            logger.info(f"Extracting {readable} IPv4 records in {len(chunks)} chunks...")
            if chunks:
                self._run_chunks(view, chunks, metrics)

        logger.info("Extraction complete! Processing lists...")
        lists = {
            name: ListData(addresses=addresses, networks=networks)
            for name, (addresses, networks) in self._shared.drain().items()
        }
        for name, data in lists.items():
            logger.info(f"{name}: {len(data.addresses)} IPs, {len(data.networks)} ranges")

        metrics.buckets_populated = len(lists)
        metrics.duration_seconds = round(time.perf_counter() - started, 3)
        self._emit_metrics()
        return lists

    def _log_header(self, header: DatabaseHeader) -> None:
        logger.info(
            f"Database info: type={header.database_type} columns={header.column_count} "
            f"ipv4_count={header.ipv4_count} base_address={header.ipv4_base_address}"
        )

    def _create_executor(self) -> Executor:
        if self.settings.executor == "process":
            categories = tuple(self.matcher.categories)
            return ProcessPoolExecutor(
                max_workers=self.settings.max_workers,
                initializer=_init_process_worker,
                initargs=(str(self.database_path), categories),
            )
        return ThreadPoolExecutor(max_workers=self.settings.max_workers, thread_name_prefix="proxylists-chunk")

    def _submit(self, executor: Executor, extractor: Optional[ChunkExtractor], start: int, end: int) -> Future:
        if extractor is None:
            return executor.submit(_extract_in_process, start, end)
        return executor.submit(self._extract_and_merge, extractor, start, end)

    def _extract_and_merge(self, extractor: ChunkExtractor, start: int, end: int) -> ChunkResult:
        if self.cancelled or self._abort_event.is_set():
            return ChunkResult(start=start, end=end, accumulator=BucketAccumulator(()), skipped=True)
        result = extractor.extract(start, end)
        self._merge(result)
        return result

    def _merge(self, result: ChunkResult) -> None:
        if not self._lock.acquire(timeout=self.settings.lock_timeout_seconds):
            raise AggregationLockError(
                f"Could not acquire aggregation lock within {self.settings.lock_timeout_seconds}s "
                f"for chunk {result.start}-{result.end}"
            )
        try:
            self._shared.merge(result.accumulator)
            result.merged = True
            result.accumulator = BucketAccumulator(())
        finally:
            self._lock.release()

    def _run_chunks(self, view: BinaryDatabaseView, chunks: List[Tuple[int, int]], metrics: ExtractionMetrics) -> None:
        extractor = ChunkExtractor(view, self.matcher) if self.settings.executor == "thread" else None
        executor = self._create_executor()
        try:
            futures = [self._submit(executor, extractor, start, end) for start, end in chunks]
            try:
                for future in as_completed(futures, timeout=self.settings.timeout_seconds):
                    result: ChunkResult = future.result()
                    if self.cancelled or result.skipped:
                        raise ExtractionCancelledError(
                            f"Extraction cancelled after {metrics.chunks_completed}/{len(chunks)} chunks"
                        )
                    if not result.merged:
                        self._merge(result)
                    self._record_chunk(result, metrics)
            except TimeoutError as exc:
                raise ExtractionTimeoutError(
                    f"Extraction exceeded {self.settings.timeout_seconds}s after "
                    f"{metrics.chunks_completed}/{len(chunks)} chunks"
                ) from exc
        except BaseException:
            self._abort_event.set()
            raise
        finally:
            # Running chunks finish; queued ones are dropped when the run aborts.
            executor.shutdown(wait=True, cancel_futures=True)

    def _record_chunk(self, result: ChunkResult, metrics: ExtractionMetrics) -> None:
        metrics.chunks_completed += 1
        metrics.rows_read += result.rows_read
        metrics.rows_skipped += result.rows_skipped
        metrics.rows_matched += result.rows_matched

        completed, total = metrics.chunks_completed, metrics.chunks_total
        if completed % self.settings.progress_interval == 0 or completed == total:
            logger.info(f"Progress: {completed}/{total} chunks ({completed / total * 100:.1f}%)")
            if self.progress_callback is not None:
                self.progress_callback(completed, total)
            self._emit_metrics()

    def _emit_metrics(self) -> None:
        if self.status_emitter is not None and self.metrics is not None:
            self.status_emitter.record_metrics(self.metrics)


__all__ = [
    "ChunkExtractor",
    "ChunkResult",
    "ChunkedAggregationPipeline",
    "ExtractionMetrics",
    "ProgressCallback",
    "partition",
]

"""Fan a job search out to every registered source and combine the results.

A fetch is all-or-nothing. Either every source succeeds and the caller gets
one list, ordered by source registration and then by each source's own
order, or the caller gets exactly one exception and no data at all.

Concurrency model (concurrent mode):

- Each source runs in a worker thread of a per-call ThreadPoolExecutor,
  inside a copy of the caller's contextvars so log context follows it.
- Workers push a SourceOutcome onto a per-call unbounded SimpleQueue, so a
  producer never blocks, even after the consumer has given up on the call.
- The consumer places each outcome at its registration index and
  concatenates once every slot is filled; completion order never reaches
  the result.
- Cancellation of the caller's context enqueues a wake-up marker through a
  done-callback. A source error already in the queue at that point wins
  over the cancellation.
- On return the call's child context is cancelled and the executor is shut
  down without waiting, so stragglers see cancellation, unstarted work is
  dropped, and late outcomes land in a queue nobody reads.
"""

import contextvars
import queue
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Tuple, Union

from jobaggr.config.models import AggregationMode, AppConfig
from jobaggr.context import FetchContext, FetchContextError
from jobaggr.domain.models import Job
from jobaggr.logging import get_logger
from jobaggr.logging.context import fetch_log_context, source_log_context
from jobaggr.sources.base import JobSource
from jobaggr.sources.factory import build_sources

from .models import SourceOutcome

logger = get_logger(__name__, component="aggregator")

# Queued by the context done-callback to wake the consumer
_CANCELLED = object()


class JobAggregator:
    """
    Combines the results of an immutable, ordered list of sources.

    The aggregator keeps no state between calls; ``fetch_jobs`` is reentrant
    and may be called from several threads at once.
    """

    def __init__(
        self,
        sources: Iterable[JobSource] = (),
        mode: Union[AggregationMode, str] = AggregationMode.CONCURRENT,
        max_workers: Optional[int] = None,
    ):
        """
        Initialize the aggregator.

        Args:
            sources: Sources in the order their results should appear
            mode: Dispatch mode, concurrent (default) or sequential
            max_workers: Cap on worker threads per call (default: one per source)

        Raises:
            ValueError: If mode is unknown or max_workers is below 1
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got: {max_workers}")

        self._sources: Tuple[JobSource, ...] = tuple(sources)
        self.mode = AggregationMode(mode)
        self.max_workers = max_workers

    @classmethod
    def from_config(cls, app_config: AppConfig) -> "JobAggregator":
        """Build an aggregator over every enabled source in ``app_config``."""
        return cls(
            build_sources(app_config),
            mode=app_config.aggregator.mode,
            max_workers=app_config.aggregator.max_workers,
        )

    @property
    def sources(self) -> Tuple[JobSource, ...]:
        """The registered sources, in registration order."""
        return self._sources

    def fetch_jobs(self, ctx: FetchContext, query: str, location: str) -> List[Job]:
        """
        Run one search across every source.

        ``query`` and ``location`` are forwarded verbatim; validating them is
        each source's job.

        Args:
            ctx: Cancellation signal and deadline for the whole search
            query: Search text
            location: Location text

        Returns:
            A new list: all jobs of source 0, then all of source 1, and so on.
            Empty when no sources are registered.

        Raises:
            FetchCancelledError: If ``ctx`` is cancelled before every source contributed
            FetchTimeoutError: If ``ctx`` expires before every source contributed
            Exception: The first source failure observed, unmodified
        """
        with fetch_log_context(query, location):
            if ctx.done():
                logger.warning(
                    "Fetch not started: context already done",
                    extra={"event": "aggregator.fetch.cancelled", "dispatched": False},
                )
                ctx.raise_if_cancelled()

            if not self._sources:
                logger.info(
                    "No sources registered; returning empty result",
                    extra={"event": "aggregator.fetch.completed", "source_count": 0, "job_count": 0},
                )
                return []

            started = time.monotonic()
            logger.info(
                f"Fetching jobs from {len(self._sources)} sources",
                extra={
                    "event": "aggregator.fetch.started",
                    "source_count": len(self._sources),
                    "mode": self.mode.value,
                },
            )

            with ctx.with_cancel() as call_ctx:
                try:
                    if self.mode is AggregationMode.SEQUENTIAL:
                        jobs = self._fetch_sequential(call_ctx, query, location)
                    else:
                        jobs = self._fetch_concurrent(call_ctx, query, location)
                except FetchContextError as e:
                    logger.warning(
                        f"Fetch cancelled: {e}",
                        extra={
                            "event": "aggregator.fetch.cancelled",
                            "dispatched": True,
                            "error_type": type(e).__name__,
                            "duration_seconds": round(time.monotonic() - started, 3),
                        },
                    )
                    raise
                except Exception as e:
                    logger.error(
                        f"Fetch failed: {e}",
                        extra={
                            "event": "aggregator.fetch.failed",
                            "error_type": type(e).__name__,
                            "duration_seconds": round(time.monotonic() - started, 3),
                        },
                    )
                    raise

            logger.info(
                f"Fetched {len(jobs)} jobs from {len(self._sources)} sources",
                extra={
                    "event": "aggregator.fetch.completed",
                    "source_count": len(self._sources),
                    "job_count": len(jobs),
                    "duration_seconds": round(time.monotonic() - started, 3),
                },
            )
            return jobs

    def _fetch_concurrent(self, ctx: FetchContext, query: str, location: str) -> List[Job]:
        """Run every source in its own worker thread and reassemble by index."""
        slots: List[Optional[List[Job]]] = [None] * len(self._sources)
        outcomes: "queue.SimpleQueue[object]" = queue.SimpleQueue()

        def wake(_ctx: FetchContext) -> None:
            outcomes.put(_CANCELLED)

        ctx.add_done_callback(wake)
        executor = ThreadPoolExecutor(
            max_workers=self.max_workers or len(self._sources),
            thread_name_prefix="jobaggr-source",
        )
        try:
            for index, source in enumerate(self._sources):
                worker_context = contextvars.copy_context()
                executor.submit(
                    worker_context.run,
                    self._run_source,
                    ctx,
                    index,
                    source,
                    query,
                    location,
                    outcomes,
                )

            pending = len(self._sources)
            while pending:
                outcome = outcomes.get()

                if outcome is _CANCELLED:
                    error = _first_queued_error(outcomes)
                    if error is not None:
                        raise error
                    ctx.raise_if_cancelled()
                    continue

                if outcome.failed:
                    raise outcome.error

                slots[outcome.index] = outcome.jobs
                pending -= 1
        finally:
            ctx.remove_done_callback(wake)
            executor.shutdown(wait=False, cancel_futures=True)

        return [job for jobs in slots for job in jobs]

    def _fetch_sequential(self, ctx: FetchContext, query: str, location: str) -> List[Job]:
        """Run sources one after another in registration order."""
        combined: List[Job] = []
        for index, source in enumerate(self._sources):
            ctx.raise_if_cancelled()
            outcome = self._call_source(ctx, index, source, query, location)
            if outcome.failed:
                raise outcome.error
            combined.extend(outcome.jobs)
        return combined

    def _run_source(
        self,
        ctx: FetchContext,
        index: int,
        source: JobSource,
        query: str,
        location: str,
        outcomes: "queue.SimpleQueue[object]",
    ) -> None:
        """
        Worker body: call the source and hand its outcome to the consumer.

        Every worker enqueues exactly one outcome. A ``BaseException`` that
        ``_call_source`` lets through is queued as the source's error before
        it is re-raised into the (unread) future.
        """
        try:
            outcome = self._call_source(ctx, index, source, query, location)
        except BaseException as e:
            source_name = getattr(source, "name", type(source).__name__)
            outcomes.put(SourceOutcome(index, source_name, error=e))
            raise
        outcomes.put(outcome)

    def _call_source(
        self,
        ctx: FetchContext,
        index: int,
        source: JobSource,
        query: str,
        location: str,
    ) -> SourceOutcome:
        """Invoke one source, capturing its records or its exception."""
        source_name = getattr(source, "name", type(source).__name__)

        with source_log_context(index, source_name):
            started = time.monotonic()
            try:
                # Copy so later mutation by the source cannot reach the result
                jobs = list(source.fetch_jobs(ctx, query, location))
            except Exception as e:
                duration = time.monotonic() - started
                logger.warning(
                    f"Source {source_name} failed: {e}",
                    extra={
                        "event": "aggregator.source.failed",
                        "error_type": type(e).__name__,
                        "duration_seconds": round(duration, 3),
                    },
                )
                return SourceOutcome(index, source_name, error=e, duration_seconds=duration)

            duration = time.monotonic() - started
            logger.debug(
                f"Source {source_name} returned {len(jobs)} jobs",
                extra={
                    "event": "aggregator.source.succeeded",
                    "job_count": len(jobs),
                    "duration_seconds": round(duration, 3),
                },
            )
            return SourceOutcome(index, source_name, jobs=jobs, duration_seconds=duration)

    def __repr__(self) -> str:
        return f"<JobAggregator sources={len(self._sources)} mode={self.mode.value}>"


def _first_queued_error(outcomes: "queue.SimpleQueue[object]") -> Optional[BaseException]:
    """Drain outcomes already queued and return the first source error among them."""
    while True:
        try:
            outcome = outcomes.get_nowait()
        except queue.Empty:
            return None
        if isinstance(outcome, SourceOutcome) and outcome.failed:
            return outcome.error

"""Fixed-size worker pool that scrapes product pages in parallel.

Each worker is a thread that owns one extraction resource (an extractor
with its own HTTP session) for its whole lifetime and pulls URLs from a
shared WorkQueue until the queue is empty or a stop is requested.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

from wooscrape.config import DEFAULT_CONCURRENCY, MAX_CONCURRENCY, SHUTDOWN_GRACE_PERIOD
from wooscrape.errors import ExtractionError, PoolStartupError, ResourceCleanupError
from wooscrape.extractor import BaseExtractor
from wooscrape.logging_config import get_logger, log_scrape_event
from wooscrape.models import Product
from wooscrape.progress import NullProgress, ProgressReporter
from wooscrape.retry import RetryPolicy
from wooscrape.work_queue import WorkQueue

__all__ = ["WorkerPool", "run_worker_pool", "clamp_concurrency"]

logger = get_logger("pool")

ExtractorFactory = Callable[[], BaseExtractor]


def clamp_concurrency(concurrency: Optional[int]) -> int:
    """Keep the worker count within 1..MAX_CONCURRENCY."""
    if not concurrency:
        return DEFAULT_CONCURRENCY
    if concurrency > MAX_CONCURRENCY:
        logger.warning(
            f"Concurrency {concurrency} exceeds limit, using {MAX_CONCURRENCY} workers"
        )
        return MAX_CONCURRENCY
    return max(1, concurrency)


class WorkerPool:
    """Run ``concurrency`` long-lived workers over a shared queue.

    Usage:
        pool = WorkerPool(stop_event=handler.event)
        products = pool.run(urls, 3, HtmlProductExtractor)
        print(pool.queue.stats().summary())

    Args:
        retry_policy: Per-URL retry policy. By default a RetryPolicy whose
            pause between attempts is cut short by ``stop_event``.
        progress: Progress reporter
        stop_event: Set to request a graceful stop
        grace_period: Seconds in-flight tasks get to finish after a stop
        poll_interval: How often the coordinating thread checks for a stop
    """

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        progress: Optional[ProgressReporter] = None,
        stop_event: Optional[threading.Event] = None,
        grace_period: float = SHUTDOWN_GRACE_PERIOD,
        poll_interval: float = 0.5,
    ):
        self.stop_event = stop_event or threading.Event()
        self.retry_policy = retry_policy or RetryPolicy(sleep=self._pause)
        self.progress = progress or NullProgress()
        self.grace_period = grace_period
        self.poll_interval = poll_interval

        self.queue: WorkQueue = WorkQueue([])
        self.interrupted = False
        self._results: List[Product] = []
        self._results_lock = threading.Lock()
        self._resources: Dict[int, BaseExtractor] = {}
        self._resources_lock = threading.Lock()
        self._total = 0
        self._started = 0
        self._startup_errors: List[Exception] = []

    def _pause(self, seconds: float) -> None:
        self.stop_event.wait(seconds)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(
        self,
        urls: Sequence[str],
        concurrency: int,
        extractor_factory: ExtractorFactory,
    ) -> List[Product]:
        """Scrape ``urls`` with ``concurrency`` workers.

        Returns:
            Extracted products in completion order. URLs that used up
            their retry budget are missing and counted in
            ``self.queue.stats().failed``.

        Raises:
            PoolStartupError: If no worker could acquire an extractor
                while URLs were still pending
        """
        workers = clamp_concurrency(concurrency)
        self.queue = WorkQueue(urls)
        self._total = len(urls)
        self._results = []
        self._started = 0
        self._startup_errors = []
        self.interrupted = False

        logger.info(f"Starting {workers} workers for {self._total} URLs")
        threads = [
            threading.Thread(
                target=self._worker,
                args=(worker_id, extractor_factory),
                name=f"worker-{worker_id}",
                daemon=True,
            )
            for worker_id in range(1, workers + 1)
        ]
        for thread in threads:
            thread.start()

        try:
            self._wait(threads)
        except KeyboardInterrupt:
            logger.warning("Interrupted, stopping workers")
            self.stop_event.set()
            self._wind_down(threads)

        self._check_started(threads)

        with self._results_lock:
            return list(self._results)

    def _check_started(self, threads: List[threading.Thread]) -> None:
        if any(t.is_alive() for t in threads):
            return
        with self._resources_lock:
            started = self._started
            errors = list(self._startup_errors)
        pending = self.queue.size()
        if started or not pending:
            return

        cause = errors[0] if errors else None
        raise PoolStartupError(
            f"None of {len(threads)} workers could start ({cause}); {pending} URLs not scraped",
            pending=pending,
        ) from cause

    # ------------------------------------------------------------------
    # Worker internals
    # ------------------------------------------------------------------

    def _worker(self, worker_id: int, extractor_factory: ExtractorFactory) -> None:
        try:
            extractor = extractor_factory()
        except Exception as e:
            logger.error(f"Worker {worker_id} could not acquire its extractor: {e}")
            with self._resources_lock:
                self._startup_errors.append(e)
            return

        with self._resources_lock:
            self._resources[worker_id] = extractor
            self._started += 1

        try:
            while not self.stop_event.is_set():
                url = self.queue.next()
                if url is None:
                    break
                self._process(worker_id, extractor, url)
        except Exception:
            logger.exception(f"Worker {worker_id} stopped on an unexpected error")
        finally:
            self._release(worker_id)
            logger.debug(f"Worker {worker_id} finished")

    def _process(self, worker_id: int, extractor: BaseExtractor, url: str) -> None:
        self.progress.update(
            f"Worker {worker_id}: Scraping product {self.queue.processed}/{self._total}..."
        )
        logger.info(f"Worker {worker_id} scraping: {url}")

        try:
            product = self.retry_policy.call(
                extractor.extract, url, label=url, should_stop=self.stop_event.is_set,
            )
        except ExtractionError as e:
            self.queue.record_failure()
            log_scrape_event("product_failed", {
                "message": f"Worker {worker_id} failed to scrape {url} after {e.attempts} attempts",
                "url": url,
                "worker": worker_id,
                "error": str(e.__cause__ or e),
            }, level=logging.WARNING, logger_name="pool")
            return

        with self._results_lock:
            self._results.append(product)
        log_scrape_event("product_scraped", {
            "url": url,
            "worker": worker_id,
            "type": product.kind.value,
        }, level=logging.DEBUG, logger_name="pool")

    def _release(self, worker_id: int) -> None:
        """Close a worker's extractor once, whoever gets here first."""
        with self._resources_lock:
            extractor = self._resources.pop(worker_id, None)
        if extractor is None:
            return
        try:
            extractor.close()
        except Exception as e:
            error = ResourceCleanupError(f"Error closing extractor for worker {worker_id}: {e}")
            logger.error(str(error))

    # ------------------------------------------------------------------
    # Coordination
    # ------------------------------------------------------------------

    def _wait(self, threads: List[threading.Thread]) -> None:
        while True:
            if self.stop_event.is_set():
                self._wind_down(threads)
                return
            alive = [t for t in threads if t.is_alive()]
            if not alive:
                return
            alive[0].join(timeout=self.poll_interval)

    def _wind_down(self, threads: List[threading.Thread]) -> None:
        """Give in-flight tasks the grace period, then close what is left."""
        self.interrupted = True
        logger.info(f"Waiting up to {self.grace_period:.0f}s for in-flight tasks...")
        deadline = time.monotonic() + self.grace_period
        for thread in threads:
            thread.join(timeout=max(0.0, deadline - time.monotonic()))

        stuck = [t.name for t in threads if t.is_alive()]
        if stuck:
            logger.warning(f"Abandoning unfinished workers: {', '.join(stuck)}")

        self.release_resources()

    def release_resources(self) -> None:
        """Close every extractor still held by a worker."""
        with self._resources_lock:
            worker_ids = list(self._resources)
        for worker_id in worker_ids:
            self._release(worker_id)


def run_worker_pool(
    urls: Sequence[str],
    concurrency: int,
    extractor_factory: ExtractorFactory,
    **pool_kwargs,
) -> List[Product]:
    """Convenience wrapper: build a WorkerPool and run it once."""
    return WorkerPool(**pool_kwargs).run(urls, concurrency, extractor_factory)

"""Tests for the worker pool."""

import logging
import threading

import pytest

from conftest import ExtractorFactory, FakeExtractor
from wooscrape.errors import PoolStartupError
from wooscrape.models import SimpleProduct
from wooscrape.pool import WorkerPool, clamp_concurrency, run_worker_pool
from wooscrape.progress import ProgressReporter
from wooscrape.retry import RetryPolicy

URLS = [f"https://shop.example.com/product/p{i}" for i in range(1, 6)]


def fast_policy() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, delay=0, sleep=lambda s: None)


class RecordingProgress(ProgressReporter):
    def __init__(self):
        self.messages = []
        self._lock = threading.Lock()

    def update(self, message):
        with self._lock:
            self.messages.append(message)


class TestWorkerPool:

    def test_one_failing_url_is_dropped_and_counted(self):
        """Five URLs, two workers, the third URL always fails."""
        factory = ExtractorFactory(failing={URLS[2]})
        pool = WorkerPool(retry_policy=fast_policy())

        products = pool.run(URLS, 2, factory)

        assert len(products) == 4
        assert {p.url for p in products} == set(URLS) - {URLS[2]}
        stats = pool.queue.stats()
        assert stats.processed == 5
        assert stats.failed == 1
        assert stats.processed == stats.succeeded + stats.failed
        assert factory.all_calls.count(URLS[2]) == 3

    def test_one_resource_per_worker(self):
        factory = ExtractorFactory()

        WorkerPool(retry_policy=fast_policy()).run(URLS, 3, factory)

        assert len(factory.created) == 3

    def test_every_url_processed_exactly_once(self):
        urls = [f"https://shop.example.com/product/p{i}" for i in range(50)]
        factory = ExtractorFactory()

        products = WorkerPool(retry_policy=fast_policy()).run(urls, 4, factory)

        assert sorted(factory.all_calls) == sorted(urls)
        assert sorted(p.url for p in products) == sorted(urls)

    def test_resources_released_once(self):
        factory = ExtractorFactory(failing={URLS[0]})

        WorkerPool(retry_policy=fast_policy()).run(URLS, 2, factory)

        assert [e.close_calls for e in factory.created] == [1, 1]

    def test_close_failure_is_logged_not_raised(self, caplog):
        class BadClose(FakeExtractor):
            def close(self):
                raise RuntimeError("browser already gone")

        caplog.set_level(logging.ERROR, logger="wooscrape")

        products = WorkerPool(retry_policy=fast_policy()).run(URLS, 2, BadClose)

        assert len(products) == 5
        assert any("Error closing extractor" in r.getMessage() for r in caplog.records)

    def test_unexpected_extractor_error_is_retried_then_dropped(self):
        class Broken(FakeExtractor):
            def extract(self, url):
                if url == URLS[1]:
                    raise KeyError("price")
                return super().extract(url)

        pool = WorkerPool(retry_policy=fast_policy())

        products = pool.run(URLS, 2, Broken)

        assert len(products) == 4
        assert pool.queue.stats().failed == 1

    def test_worker_that_cannot_start_leaves_work_to_others(self):
        created = []
        lock = threading.Lock()

        def factory():
            with lock:
                created.append(None)
                if len(created) == 1:
                    raise OSError("no browser available")
            return FakeExtractor()

        products = WorkerPool(retry_policy=fast_policy()).run(URLS, 2, factory)

        assert len(products) == 5

    def test_no_worker_can_start_raises(self):
        def factory():
            raise RuntimeError("browser launch failed")

        pool = WorkerPool(retry_policy=fast_policy())

        with pytest.raises(PoolStartupError) as exc_info:
            pool.run(URLS, 2, factory)

        assert exc_info.value.pending == 5
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert pool.queue.stats().processed == 0

    def test_no_worker_needed_for_empty_url_list(self):
        def factory():
            raise RuntimeError("browser launch failed")

        assert WorkerPool(retry_policy=fast_policy()).run([], 2, factory) == []

    def test_stop_cancels_remaining_retries(self):
        stop = threading.Event()
        factory = ExtractorFactory(failing={URLS[0]}, on_extract=lambda url: stop.set())
        sleeps = []
        policy = RetryPolicy(max_attempts=3, delay=5.0, sleep=sleeps.append)
        pool = WorkerPool(retry_policy=policy, stop_event=stop, grace_period=1.0, poll_interval=0.05)

        products = pool.run(URLS, 1, factory)

        assert products == []
        assert factory.all_calls == [URLS[0]]
        assert sleeps == []
        assert pool.queue.stats().failed == 1

    def test_empty_url_list(self):
        factory = ExtractorFactory()
        pool = WorkerPool(retry_policy=fast_policy())

        assert pool.run([], 3, factory) == []
        assert pool.queue.stats().processed == 0
        assert all(e.close_calls == 1 for e in factory.created)

    def test_stop_before_start_processes_nothing(self):
        stop = threading.Event()
        stop.set()
        factory = ExtractorFactory()
        pool = WorkerPool(retry_policy=fast_policy(), stop_event=stop, grace_period=1.0)

        products = pool.run(URLS, 2, factory)

        assert products == []
        assert pool.interrupted is True
        assert all(e.close_calls == 1 for e in factory.created)

    def test_stop_mid_run_keeps_partial_results(self):
        stop = threading.Event()
        factory = ExtractorFactory(on_extract=lambda url: stop.set() if url == URLS[0] else None)
        pool = WorkerPool(retry_policy=fast_policy(), stop_event=stop, grace_period=1.0, poll_interval=0.05)

        products = pool.run(URLS, 1, factory)

        assert [p.url for p in products] == [URLS[0]]
        assert pool.interrupted is True
        assert pool.queue.stats().remaining == 4
        assert factory.created[0].close_calls == 1

    def test_progress_is_reported(self):
        progress = RecordingProgress()

        WorkerPool(retry_policy=fast_policy(), progress=progress).run(URLS, 2, ExtractorFactory())

        assert len(progress.messages) == 5
        assert all("Scraping product" in m for m in progress.messages)

    def test_progress_counts_dequeued_urls(self):
        progress = RecordingProgress()

        WorkerPool(retry_policy=fast_policy(), progress=progress).run(URLS, 1, ExtractorFactory())

        assert progress.messages == [
            f"Worker 1: Scraping product {i}/5..." for i in range(1, 6)
        ]

    def test_default_policy_pause_is_cut_short_by_stop(self):
        stop = threading.Event()
        stop.set()
        pool = WorkerPool(stop_event=stop)

        pool.retry_policy.sleep(60)  # returns immediately

    def test_run_worker_pool_helper(self):
        products = run_worker_pool(URLS[:2], 1, ExtractorFactory(), retry_policy=fast_policy())

        assert all(isinstance(p, SimpleProduct) for p in products)
        assert len(products) == 2


class TestClampConcurrency:

    def test_bounds(self):
        assert clamp_concurrency(0) == 3
        assert clamp_concurrency(None) == 3
        assert clamp_concurrency(-4) == 1
        assert clamp_concurrency(5) == 5
        assert clamp_concurrency(50) == 10

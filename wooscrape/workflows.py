"""High-level scraping workflow.

discover sitemap URLs -> scrape them with the worker pool -> export CSV.
"""

import os
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests  # type: ignore[import-untyped]

from wooscrape.config import DEFAULT_CONCURRENCY, OUTPUT_DIR
from wooscrape.csv_utils import export_products_to_csv
from wooscrape.extractor import BaseExtractor, HtmlProductExtractor
from wooscrape.logging_config import get_logger, log_scrape_event
from wooscrape.models import Product
from wooscrape.pool import WorkerPool, clamp_concurrency
from wooscrape.progress import NullProgress, ProgressReporter
from wooscrape.retry import RetryPolicy
from wooscrape.sitemap import discover_product_urls
from wooscrape.url_validation import get_filename_from_url, normalize_site_root
from wooscrape.work_queue import QueueStats

__all__ = ["ScrapeSummary", "scrape_site"]

logger = get_logger("workflows")


@dataclass
class ScrapeSummary:
    site_url: str
    output_path: str
    urls_found: int
    products: List[Product]
    rows_written: int
    stats: QueueStats
    interrupted: bool = False


def scrape_site(
    site_url: str,
    limit: Optional[int] = None,
    concurrency: int = DEFAULT_CONCURRENCY,
    output_dir: str = OUTPUT_DIR,
    progress: Optional[ProgressReporter] = None,
    stop_event: Optional[threading.Event] = None,
    extractor_factory: Callable[[], BaseExtractor] = HtmlProductExtractor,
    retry_policy: Optional[RetryPolicy] = None,
    session: Optional[requests.Session] = None,
    on_pool_created: Optional[Callable[[WorkerPool], None]] = None,
) -> ScrapeSummary:
    """Scrape every product of a site and export it to CSV.

    Args:
        site_url: Site root, e.g. https://shop.example.com
        limit: Scrape at most this many products (None for all)
        concurrency: Number of workers
        output_dir: Directory for the CSV file
        progress: Progress reporter
        stop_event: Set to stop scraping early; partial results are exported
        extractor_factory: Builds one extractor per worker
        retry_policy: Per-URL retry policy override
        session: requests.Session used for sitemap discovery
        on_pool_created: Called with the pool before it starts

    Returns:
        Run summary

    Raises:
        URLValidationError: If the site URL is invalid
        DiscoveryError: If no sitemap yields product URLs
        PoolStartupError: If no worker could acquire an extractor
        WriteError: If the export cannot be written
    """
    progress = progress or NullProgress()
    site_root = normalize_site_root(site_url)
    concurrency = clamp_concurrency(concurrency)

    logger.info(f"Starting scrape of: {site_root} with {concurrency} concurrent workers")
    if limit:
        logger.info(f"Will scrape up to {limit} products")

    progress.update("Fetching sitemap...")
    product_urls = discover_product_urls(site_root, session=session)

    urls_to_scrape = product_urls[:limit] if limit else product_urls
    logger.info(
        f"Will scrape {len(urls_to_scrape)} out of {len(product_urls)} available products"
    )

    pool = WorkerPool(
        retry_policy=retry_policy,
        progress=progress,
        stop_event=stop_event,
    )
    if on_pool_created is not None:
        on_pool_created(pool)

    products = pool.run(urls_to_scrape, concurrency, extractor_factory)
    stats = pool.queue.stats()
    if pool.interrupted:
        logger.warning(f"Scrape interrupted; exporting {len(products)} products scraped so far")

    output_path = os.path.join(output_dir, get_filename_from_url(site_root))
    progress.update("Generating CSV file...")
    rows_written = export_products_to_csv(products, output_path)

    logger.info(f"Queue stats: {stats.summary()}")
    log_scrape_event("run_complete", {
        "site": site_root,
        "output": output_path,
        "products": len(products),
        "rows": rows_written,
        "processed": stats.processed,
        "failed": stats.failed,
        "success_rate": round(stats.success_rate, 4),
        "elapsed_seconds": round(stats.elapsed_seconds, 2),
        "interrupted": pool.interrupted,
    })

    return ScrapeSummary(
        site_url=site_root,
        output_path=output_path,
        urls_found=len(product_urls),
        products=products,
        rows_written=rows_written,
        stats=stats,
        interrupted=pool.interrupted,
    )

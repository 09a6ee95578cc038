"""WooCommerce catalog scraper package."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from wooscrape.config import DEFAULT_CONCURRENCY, RETRY_ATTEMPTS, RETRY_DELAY
from wooscrape.csv_utils import export_products_to_csv, write_rows_to_csv
from wooscrape.errors import (
    DiscoveryError,
    ExtractionError,
    NoSitemapFound,
    PoolStartupError,
    ResourceCleanupError,
    WriteError,
)
from wooscrape.extractor import BaseExtractor, HtmlProductExtractor
from wooscrape.models import (
    ExportRow,
    Product,
    ProductKind,
    SimpleProduct,
    StockStatus,
    VariableProduct,
    VariationRecord,
)
from wooscrape.pool import WorkerPool, run_worker_pool
from wooscrape.retry import RetryPolicy
from wooscrape.rows import expand, expand_products
from wooscrape.sitemap import discover_product_urls
from wooscrape.work_queue import QueueStats, WorkQueue
from wooscrape.workflows import scrape_site

__all__ = [
    # Version
    "__version__",
    # Config
    "DEFAULT_CONCURRENCY",
    "RETRY_ATTEMPTS",
    "RETRY_DELAY",
    # Errors
    "DiscoveryError",
    "ExtractionError",
    "NoSitemapFound",
    "PoolStartupError",
    "ResourceCleanupError",
    "WriteError",
    # Models
    "ExportRow",
    "Product",
    "ProductKind",
    "SimpleProduct",
    "StockStatus",
    "VariableProduct",
    "VariationRecord",
    # Core components
    "BaseExtractor",
    "HtmlProductExtractor",
    "QueueStats",
    "RetryPolicy",
    "WorkQueue",
    "WorkerPool",
    "discover_product_urls",
    "expand",
    "expand_products",
    "export_products_to_csv",
    "run_worker_pool",
    "scrape_site",
    "write_rows_to_csv",
]

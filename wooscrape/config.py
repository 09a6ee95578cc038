"""Configuration and constants for the scraper."""

from typing import Dict, List, Tuple

__all__ = [
    "SITEMAP_LOCATIONS",
    "HEADERS",
    "REQUEST_TIMEOUT",
    "RETRY_ATTEMPTS",
    "RETRY_DELAY",
    "DEFAULT_CONCURRENCY",
    "MAX_CONCURRENCY",
    "SHUTDOWN_GRACE_PERIOD",
    "IMAGE_EXTENSIONS",
    "EXPORT_ID_BASE",
    "SKU_BASE_LENGTH",
    "DEFAULT_STOCK",
    "OUTPUT_DIR",
]

# Sitemap locations probed in priority order
SITEMAP_LOCATIONS: List[str] = [
    "/sitemap.xml",
    "/product-sitemap.xml",
]

# HTTP headers for sitemap and product page requests
HEADERS: Dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    ),
    "Accept-Language": "en-US,en;q=0.9",
}

# Request timeout (seconds)
REQUEST_TIMEOUT = 30

# Per-URL retry budget: fixed attempts, fixed pause between them
RETRY_ATTEMPTS = 3
RETRY_DELAY = 5.0  # seconds

# Worker pool sizing
DEFAULT_CONCURRENCY = 3
MAX_CONCURRENCY = 10  # Upper bound to protect system resources

# How long in-flight tasks may wind down after an interrupt (seconds)
SHUTDOWN_GRACE_PERIOD = 10.0

# Image URLs must end in one of these
IMAGE_EXTENSIONS: Tuple[str, ...] = ("jpg", "jpeg", "png", "webp", "gif")

# Export settings
EXPORT_ID_BASE = 1000
SKU_BASE_LENGTH = 15
DEFAULT_STOCK = "1000"

# Output directory for CSV exports
OUTPUT_DIR = "output"

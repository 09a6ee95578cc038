"""Exception types raised by the scraper."""

from typing import Optional

__all__ = [
    "ScrapeError",
    "DiscoveryError",
    "NoSitemapFound",
    "ExtractionError",
    "WriteError",
    "ResourceCleanupError",
    "PoolStartupError",
]


class ScrapeError(Exception):
    """Base class for scraper errors."""
    pass


class DiscoveryError(ScrapeError):
    """Raised when product URLs cannot be discovered. Fatal for the run."""
    pass


class NoSitemapFound(DiscoveryError):
    """Raised when no sitemap location yields usable product URLs."""

    def __init__(self, site_root: str):
        self.site_root = site_root
        super().__init__(
            f"No product URLs found in any sitemap for {site_root}. "
            f"Make sure the site has a sitemap with product URLs."
        )


class ExtractionError(ScrapeError):
    """Raised when a product page cannot be fetched or parsed."""

    def __init__(self, message: str, url: Optional[str] = None, attempts: int = 0):
        super().__init__(message)
        self.url = url
        self.attempts = attempts


class WriteError(ScrapeError):
    """Raised when the export file cannot be written. Fatal for the run."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Failed to write export file {path}: {reason}")


class ResourceCleanupError(ScrapeError):
    """A worker's extraction resource failed to close.

    Only ever logged, never raised out of the pool.
    """
    pass


class PoolStartupError(ScrapeError):
    """Raised when no worker could acquire its extraction resource.

    Nothing can be scraped, so the run stops instead of exporting an
    empty file.
    """

    def __init__(self, message: str, pending: int = 0):
        super().__init__(message)
        self.pending = pending

"""URL validation and sanitization utilities."""

import re
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

__all__ = [
    "URLValidationError",
    "sanitize_url",
    "validate_site_url",
    "normalize_site_root",
    "is_product_url",
    "get_filename_from_url",
]


class URLValidationError(Exception):
    """Raised when URL validation fails."""
    pass


# Localized duplicates of the catalog live under /es/, /fr/, ...
LOCALE_SEGMENT_RE = re.compile(r"/[a-z]{2}/")

PRODUCT_PATH_MARKERS = ("/product/", "/products/")

DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}


def sanitize_url(url: str) -> str:
    """Sanitize a URL by stripping whitespace and control characters.

    Args:
        url: Raw URL string

    Returns:
        Sanitized URL string
    """
    if not url:
        return ""

    url = url.strip()
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url)
    return url.replace("%00", "")


def validate_site_url(url: Optional[str]) -> str:
    """Validate the site root given by the user.

    Args:
        url: Site URL, e.g. https://shop.example.com

    Returns:
        Sanitized URL

    Raises:
        URLValidationError: If the URL is missing or not http(s)
    """
    if not url:
        raise URLValidationError("Website URL is required")

    url = sanitize_url(url)

    parsed = urlparse(url)
    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme: {scheme}")
    if scheme not in ("http", "https"):
        raise URLValidationError("Invalid URL. Must start with http:// or https://")
    if not parsed.netloc:
        raise URLValidationError("URL has no domain")

    return url


def normalize_site_root(url: str) -> str:
    """Strip trailing slashes so sitemap paths can be appended."""
    return validate_site_url(url).rstrip("/")


def is_product_url(url: str) -> bool:
    """Check whether a sitemap entry points at a product page.

    Locale-prefixed URLs (``/xx/``) are rejected; the URL must contain
    ``/product/`` or ``/products/``.
    """
    if not url:
        return False
    if LOCALE_SEGMENT_RE.search(url):
        return False
    return any(marker in url for marker in PRODUCT_PATH_MARKERS)


def get_filename_from_url(url: str, now: Optional[datetime] = None) -> str:
    """Build the export filename from the site's host and a timestamp.

    ``https://www.shop-example.com/`` -> ``woocommerce-shop-example-<ts>.csv``
    """
    name = re.sub(r"^https?://(www\.)?", "", url.strip(), flags=re.IGNORECASE)
    name = name.split("/")[0].split(".")[0]
    name = re.sub(r"[^a-z0-9]", "-", name, flags=re.IGNORECASE)

    timestamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"woocommerce-{name}-{timestamp}.csv"

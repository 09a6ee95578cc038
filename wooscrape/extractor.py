"""Product page extraction: fetch a URL and turn it into a product record."""

from abc import ABC, abstractmethod
from typing import List, Optional

import requests  # type: ignore[import-untyped]
from bs4 import BeautifulSoup

from wooscrape.config import HEADERS, REQUEST_TIMEOUT
from wooscrape.errors import ExtractionError
from wooscrape.html_utils import (
    extract_base_price,
    extract_categories,
    extract_descriptions,
    extract_images,
    extract_name,
    extract_tags,
    extract_variations,
    is_variable_product,
)
from wooscrape.logging_config import get_logger
from wooscrape.models import Product, SimpleProduct, VariableProduct
from wooscrape.url_validation import sanitize_url

__all__ = [
    "BaseExtractor",
    "HtmlProductExtractor",
    "create_session",
    "parse_product_page",
    "missing_fields",
    "log_product_details",
]

logger = get_logger("extractor")


class BaseExtractor(ABC):
    """One worker's extraction resource.

    Implementations hold whatever is expensive to set up (an HTTP
    session, a browser page) and are closed exactly once by the pool.
    """

    @abstractmethod
    def extract(self, url: str) -> Product:
        """Return the product at ``url``.

        Raises:
            ExtractionError: On network, timeout or page-shape failures
        """
        ...

    def close(self) -> None:
        pass

    def __enter__(self) -> "BaseExtractor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def create_session() -> requests.Session:
    """Create a requests Session with connection pooling and proper headers."""
    session = requests.Session()
    session.headers.update(HEADERS)
    session.headers.setdefault("Accept-Encoding", "gzip, deflate")
    return session


def parse_product_page(html: str, url: str = "") -> Product:
    """Parse a WooCommerce product page into a product record."""
    soup = BeautifulSoup(html, "html.parser")

    regular_price = extract_base_price(soup)
    short_description, full_description = extract_descriptions(soup)
    fields = dict(
        name=extract_name(soup),
        url=sanitize_url(url),
        short_description=short_description,
        full_description=full_description,
        regular_price=regular_price,
        categories=extract_categories(soup),
        tags=extract_tags(soup),
        images=extract_images(soup),
    )

    if not is_variable_product(soup):
        return SimpleProduct(**fields)

    variations, method = extract_variations(soup, regular_price)
    if method is None:
        logger.warning(f"No variations found using any method: {url}")
    return VariableProduct(variations=variations, **fields)


def missing_fields(product: Product) -> List[str]:
    missing: List[str] = []
    if not product.name:
        missing.append("name")
    if not product.regular_price:
        missing.append("price")
    if not product.images:
        missing.append("images")
    return missing


def log_product_details(product: Product) -> None:
    """Log a one-line summary and flag incomplete records."""
    logger.debug(
        f"{product.kind.value} '{product.name or 'Not found'}': "
        f"price={product.regular_price or 'Not found'}, "
        f"categories={len(product.categories)}, tags={len(product.tags)}, "
        f"images={len(product.images)}"
    )
    if isinstance(product, VariableProduct):
        if product.has_variations:
            logger.debug(f"  {len(product.variations)} variations")
        else:
            logger.warning(f"Variable product without variations: {product.url}")

    missing = missing_fields(product)
    if missing:
        logger.warning(f"Missing fields for {product.url}: {', '.join(missing)}")


class HtmlProductExtractor(BaseExtractor):
    """Fetches pages over HTTP and parses them with BeautifulSoup.

    Each instance owns its own requests.Session; the worker pool creates
    one per worker.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT):
        self.session = session or create_session()
        self.timeout = timeout
        self._closed = False

    def fetch_html(self, url: str) -> str:
        try:
            resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise ExtractionError(f"Failed to fetch {url}: {e}", url=url) from e
        return str(resp.text)

    def extract(self, url: str) -> Product:
        html = self.fetch_html(url)
        try:
            product = parse_product_page(html, url)
        except Exception as e:
            raise ExtractionError(f"Failed to parse {url}: {e}", url=url) from e
        log_product_details(product)
        return product

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.session.close()

"""Shared test fixtures and fakes for the wooscrape test suite."""

import threading
from typing import Callable, Dict, List, Optional, Union

import pytest
import requests  # type: ignore[import-untyped]

from wooscrape.extractor import BaseExtractor
from wooscrape.models import Product, SimpleProduct, StockStatus, VariableProduct, VariationRecord
from wooscrape.retry import RetryPolicy


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text
        self.content = text.encode("utf-8")

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Serves canned responses by URL; unknown URLs get a 404."""

    def __init__(self, pages: Optional[Dict[str, Union[FakeResponse, Exception]]] = None):
        self.pages = pages or {}
        self.requested: List[str] = []
        self.headers: Dict[str, str] = {}
        self.closed = False

    def get(self, url: str, timeout=None) -> FakeResponse:
        self.requested.append(url)
        page = self.pages.get(url)
        if page is None:
            return FakeResponse(404)
        if isinstance(page, Exception):
            raise page
        return page

    def close(self) -> None:
        self.closed = True


class FakeExtractor(BaseExtractor):
    """Turns a URL into a SimpleProduct, failing for URLs in ``failing``."""

    def __init__(self, failing=(), on_extract: Optional[Callable[[str], None]] = None):
        self.failing = set(failing)
        self.on_extract = on_extract
        self.calls: List[str] = []
        self.close_calls = 0

    def extract(self, url: str) -> Product:
        self.calls.append(url)
        if self.on_extract is not None:
            self.on_extract(url)
        if url in self.failing:
            raise requests.exceptions.ConnectionError(f"cannot reach {url}")
        return SimpleProduct(name=url.rstrip("/").rsplit("/", 1)[-1], url=url, regular_price="10")

    def close(self) -> None:
        self.close_calls += 1


class ExtractorFactory:
    """Records every extractor it builds."""

    def __init__(self, **extractor_kwargs):
        self.extractor_kwargs = extractor_kwargs
        self.created: List[FakeExtractor] = []
        self._lock = threading.Lock()

    def __call__(self) -> FakeExtractor:
        extractor = FakeExtractor(**self.extractor_kwargs)
        with self._lock:
            self.created.append(extractor)
        return extractor

    @property
    def all_calls(self) -> List[str]:
        return [url for e in self.created for url in e.calls]


def urlset(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        f"{entries}</urlset>"
    )


def sitemap_index(*locs: str) -> str:
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        f"{entries}</sitemapindex>"
    )


@pytest.fixture
def no_wait_retry():
    """Retry policy with the production budget but no real pause."""
    sleeps: List[float] = []
    policy = RetryPolicy(max_attempts=3, delay=5.0, sleep=sleeps.append)
    policy.sleeps = sleeps
    return policy


@pytest.fixture
def tshirt():
    """Variable product with color x size variations."""
    return VariableProduct(
        name="Logo T-Shirt (Organic)",
        url="https://shop.example.com/product/logo-tshirt/",
        full_description="<p>Soft cotton.</p>",
        regular_price="20",
        categories=["Clothing", "Shirts"],
        tags=["cotton", "logo"],
        images=["https://shop.example.com/img/a.jpg", "https://shop.example.com/img/b.jpg"],
        variations=[
            VariationRecord(
                attributes={"color": "red", "size": "M"},
                price="20", sku="TS-RED-M", stock_status=StockStatus.IN_STOCK,
            ),
            VariationRecord(
                attributes={"color": "blue", "size": "M"},
                price="22", sku="TS-BLUE-M", stock_status=StockStatus.OUT_OF_STOCK,
                image="https://shop.example.com/img/blue.jpg",
            ),
        ],
    )


@pytest.fixture
def mug():
    return SimpleProduct(
        name="Coffee Mug, 350ml!",
        url="https://shop.example.com/product/mug/",
        full_description="<p>Ceramic.</p>",
        regular_price="9.50",
        categories=["Kitchen"],
        tags=["mug"],
        images=["https://shop.example.com/img/mug.jpg"],
    )

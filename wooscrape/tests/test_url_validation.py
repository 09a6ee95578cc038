"""Tests for URL validation helpers."""

from datetime import datetime

import pytest

from wooscrape.url_validation import (
    URLValidationError,
    get_filename_from_url,
    is_product_url,
    normalize_site_root,
    sanitize_url,
    validate_site_url,
)


class TestValidateSiteUrl:

    def test_valid_urls(self):
        assert validate_site_url("https://shop.example.com") == "https://shop.example.com"
        assert validate_site_url("  http://shop.example.com/ ") == "http://shop.example.com/"

    def test_empty_url(self):
        with pytest.raises(URLValidationError, match="required"):
            validate_site_url("")

    @pytest.mark.parametrize("url", ["ftp://shop.example.com", "shop.example.com"])
    def test_non_http_scheme(self, url):
        with pytest.raises(URLValidationError, match="http:// or https://"):
            validate_site_url(url)

    def test_dangerous_scheme(self):
        with pytest.raises(URLValidationError, match="Dangerous"):
            validate_site_url("javascript:alert(1)")

    def test_missing_domain(self):
        with pytest.raises(URLValidationError):
            validate_site_url("https://")


class TestHelpers:

    def test_sanitize_strips_control_characters(self):
        assert sanitize_url(" https://x.test/\x00a\n ") == "https://x.test/a"

    def test_normalize_site_root(self):
        assert normalize_site_root("https://shop.example.com///") == "https://shop.example.com"

    @pytest.mark.parametrize("url,expected", [
        ("https://shop.example.com/product/mug/", True),
        ("https://shop.example.com/products/mug", True),
        ("https://shop.example.com/en/product/mug/", False),
        ("https://shop.example.com/blog/mug/", False),
        ("", False),
    ])
    def test_is_product_url(self, url, expected):
        assert is_product_url(url) is expected

    def test_filename_from_url(self):
        now = datetime(2024, 3, 5, 14, 7, 9)

        assert (
            get_filename_from_url("https://www.shop-example.com/", now=now)
            == "woocommerce-shop-example-2024-03-05T14-07-09.csv"
        )

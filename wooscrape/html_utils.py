"""HTML parsing and extraction utilities for WooCommerce product pages."""

import itertools
import json
import re
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from wooscrape.config import IMAGE_EXTENSIONS
from wooscrape.logging_config import get_logger
from wooscrape.models import StockStatus, VariationRecord

__all__ = [
    "clean_description",
    "parse_price",
    "extract_name",
    "extract_base_price",
    "extract_categories",
    "extract_tags",
    "extract_descriptions",
    "extract_images",
    "is_variable_product",
    "combine_attributes",
    "build_variations",
    "variations_from_payload",
    "extract_variations",
]

logger = get_logger("html_utils")

SHORT_DESCRIPTION_SELECTORS = [
    ".woocommerce-product-details__short-description",
    ".product-short-description",
    '[itemprop="description"]',
]

FULL_DESCRIPTION_SELECTORS = [
    "#tab-description",
    ".woocommerce-Tabs-panel--description",
    ".woocommerce-product-content",
    ".product-description",
]

IMAGE_SELECTORS = [
    ".woocommerce-product-gallery__image img",
    ".woocommerce-product-gallery img",
    ".wp-post-image",
    ".wvg-post-image",
    ".product-images img",
    ".product-gallery img",
    ".flex-control-thumbs img",
    ".thumbnails img",
]

TAG_SELECTORS = [
    ".tagged_as a",
    ".tags a",
    ".product_tags a",
    '[rel="tag"]',
    '.product_meta a[href*="/tag/"]',
]

TAG_PATTERNS = [
    re.compile(r'<a[^>]*/tag/([^"]+)"[^>]*>([^<]+)</a>'),
    re.compile(r"<span[^>]*tagged_as[^>]*>(Tags:|Tagged:)?([^<]+)</span>"),
    re.compile(r'<meta[^>]*name="keywords"[^>]*content="([^"]+)"'),
]

IMAGE_URL_RE = re.compile(
    r"\.(" + "|".join(IMAGE_EXTENSIONS) + r")(\?.*)?$", re.IGNORECASE
)

PLACEHOLDER_OPTION = "Choose an option"


# =============================================================================
# Text helpers
# =============================================================================

def clean_description(html: Optional[str]) -> str:
    """Reduce a description fragment to <p> and <img src> tags.

    Whitespace is collapsed and a newline follows every closing </p>.
    """
    if not html:
        return ""

    html = html.replace('<div class="wc-tab-inner">', "").replace("</div>", " ")
    html = re.sub(r"[\r\n]+", " ", html)
    html = re.sub(r"\s+", " ", html)

    def _keep_src(match: "re.Match[str]") -> str:
        src = re.search(r'src="([^"]+)"', match.group(0))
        return f'<img src="{src.group(1)}">' if src else ""

    html = re.sub(r"<img[^>]+>", _keep_src, html)
    html = re.sub(r"<(?!/?(?:p|img)(?:\s[^>]*)?>)[^>]+>", " ", html)
    html = re.sub(r"\s+", " ", html).strip()
    html = html.replace("</p>", "</p>\n")
    return html.strip()


def parse_price(text: Optional[str]) -> str:
    """'1.299,00 €' style noise removed: keep digits and dots only."""
    if not text:
        return ""
    return re.sub(r"[^0-9.]", "", text)


def _format_price(value: Any) -> str:
    if value is None or value == "":
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _dedupe(items: List[str]) -> List[str]:
    seen = set()
    unique: List[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            unique.append(item)
    return unique


# =============================================================================
# Basic fields
# =============================================================================

def extract_name(soup: BeautifulSoup) -> str:
    el = soup.select_one(".product_title")
    return el.get_text(strip=True) if el else ""


def extract_base_price(soup: BeautifulSoup) -> str:
    el = soup.select_one(".price .amount")
    return parse_price(el.get_text()) if el else ""


def extract_categories(soup: BeautifulSoup) -> List[str]:
    return [
        el.get_text(strip=True)
        for el in soup.select(".posted_in a")
        if el.get_text(strip=True)
    ]


def extract_tags(soup: BeautifulSoup) -> List[str]:
    """Collect product tags from known markup, then from regex fallbacks."""
    tags: List[str] = []

    for el in soup.select(", ".join(TAG_SELECTORS)):
        tag = el.get_text(strip=True)
        if tag:
            tags.append(tag)

    html_content = str(soup)
    for pattern in TAG_PATTERNS:
        for match in pattern.finditer(html_content):
            groups = match.groups()
            raw = groups[1] if len(groups) > 1 and groups[1] else groups[0]
            if not raw:
                continue
            tags.extend(t.strip() for t in raw.split(",") if t.strip())

    return _dedupe(tags)


def extract_descriptions(soup: BeautifulSoup) -> Tuple[str, str]:
    """Return (short_description, full_description), both cleaned."""
    short_description = ""
    for selector in SHORT_DESCRIPTION_SELECTORS:
        el = soup.select_one(selector)
        if el:
            short_description = clean_description(el.decode_contents())
            break

    full_description = ""
    for selector in FULL_DESCRIPTION_SELECTORS:
        el = soup.select_one(selector)
        if el:
            full_description = clean_description(el.decode_contents())
            break

    return short_description, full_description


# =============================================================================
# Images
# =============================================================================

def _best_from_srcset(srcset: Optional[str]) -> Optional[str]:
    """Pick the widest candidate of a srcset attribute."""
    if not srcset:
        return None
    candidates: List[Tuple[int, str]] = []
    for part in srcset.split(","):
        pieces = part.strip().split()
        if not pieces:
            continue
        width = 0
        if len(pieces) > 1:
            digits = re.sub(r"\D", "", pieces[1])
            width = int(digits) if digits else 0
        candidates.append((width, pieces[0]))
    if not candidates:
        return None
    candidates.sort(key=lambda c: c[0], reverse=True)
    return candidates[0][1]


def _clean_image_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    url = url.strip()
    if url.startswith("//"):
        url = "https:" + url
    return url.split("?", 1)[0]


def extract_images(soup: BeautifulSoup) -> List[str]:
    """Collect gallery image URLs, best quality source first per <img>."""
    images: List[str] = []
    for img in soup.select(", ".join(IMAGE_SELECTORS)):
        sources = [
            img.get("data-large_image"),
            _best_from_srcset(img.get("srcset")),
            img.get("data-src"),
            img.get("src"),
        ]
        for src in sources:
            url = _clean_image_url(src if isinstance(src, str) else None)
            if url and url.startswith("http") and IMAGE_URL_RE.search(url):
                images.append(url)
    return _dedupe(images)


# =============================================================================
# Variations
# =============================================================================

def is_variable_product(soup: BeautifulSoup) -> bool:
    return soup.select_one(".variations_form") is not None


def combine_attributes(attributes: Dict[str, List[str]]) -> List[Dict[str, str]]:
    """Cartesian product of attribute value lists.

    The first attribute varies slowest; keys keep discovery order.
    ``{}`` yields a single empty combination.
    """
    names = list(attributes)
    return [
        dict(zip(names, values))
        for values in itertools.product(*(attributes[n] for n in names))
    ]


def _payload_stock(entry: Dict[str, Any]) -> StockStatus:
    if "is_in_stock" not in entry:
        return StockStatus.UNKNOWN
    return StockStatus.IN_STOCK if entry.get("is_in_stock") else StockStatus.OUT_OF_STOCK


def _payload_image(entry: Dict[str, Any]) -> str:
    image = entry.get("image")
    if not isinstance(image, dict):
        return ""
    return _clean_image_url(image.get("full_src") or image.get("url") or image.get("src")) or ""


def _payload_price(entry: Dict[str, Any], base_price: str) -> str:
    price = entry.get("display_price")
    if price is None or price == "":
        price = entry.get("price")
    return _format_price(price) or base_price


def build_variations(
    attributes: Dict[str, List[str]],
    base_price: str,
    payload: Optional[List[Dict[str, Any]]] = None,
) -> List[VariationRecord]:
    """Fill the grid: one variation per attribute combination.

    Combinations found in ``payload`` take its price, SKU and stock;
    the rest get the base price and an empty SKU.
    """
    if not attributes:
        return []

    variations: List[VariationRecord] = []
    for combo in combine_attributes(attributes):
        match = None
        for entry in payload or []:
            entry_attrs = entry.get("attributes") or {}
            if all(entry_attrs.get(f"attribute_{k}") == v for k, v in combo.items()):
                match = entry
                break

        if match is not None:
            variations.append(VariationRecord(
                attributes=combo,
                price=_payload_price(match, base_price),
                sku=str(match.get("sku") or ""),
                stock_status=_payload_stock(match),
                image=_payload_image(match),
            ))
        else:
            variations.append(VariationRecord(attributes=combo, price=base_price))
    return variations


def variations_from_payload(
    payload: List[Dict[str, Any]],
    base_price: str,
) -> List[VariationRecord]:
    """Variations from WooCommerce's ``data-product_variations`` JSON.

    Attribute value sets are inferred from the payload and expanded into
    the full grid. A payload entry with an empty ("any") value cannot be
    matched against the grid; then the payload entries are used as-is.
    """
    attributes: Dict[str, List[str]] = {}
    has_wildcard = False
    for entry in payload:
        for key, value in (entry.get("attributes") or {}).items():
            name = key[len("attribute_"):] if key.startswith("attribute_") else key
            values = attributes.setdefault(name, [])
            if value:
                if value not in values:
                    values.append(value)
            else:
                has_wildcard = True

    if has_wildcard:
        names = list(attributes)
        return [
            VariationRecord(
                attributes={
                    n: str((entry.get("attributes") or {}).get(f"attribute_{n}") or "")
                    for n in names
                },
                price=_payload_price(entry, base_price),
                sku=str(entry.get("sku") or ""),
                stock_status=_payload_stock(entry),
                image=_payload_image(entry),
            )
            for entry in payload
        ]

    attributes = {name: values for name, values in attributes.items() if values}
    return build_variations(attributes, base_price, payload)


def _select_options(select) -> List[str]:
    return [
        option.get_text(strip=True)
        for option in select.find_all("option")
        if option.get("value") and option.get("value") != PLACEHOLDER_OPTION
    ]


def _from_payload_attr(soup: BeautifulSoup, base_price: str) -> List[VariationRecord]:
    form = soup.select_one(".variations_form")
    if form is None:
        return []
    raw = form.get("data-product_variations")
    if not raw or raw in ("[]", "false"):
        return []
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        logger.debug(f"Failed to parse data-product_variations: {e}")
        return []
    if not isinstance(payload, list) or not payload:
        return []
    return variations_from_payload([p for p in payload if isinstance(p, dict)], base_price)


def _from_additional_info(soup: BeautifulSoup, base_price: str) -> List[VariationRecord]:
    table = soup.select_one(".woocommerce-product-attributes.shop_attributes")
    if table is None:
        return []
    attributes: Dict[str, List[str]] = {}
    for row in table.select("tr.woocommerce-product-attributes-item"):
        label = row.select_one(".wd-attr-name-label")
        cell = row.select_one(".woocommerce-product-attributes-item__value")
        if not label or not cell:
            continue
        options = [p.get_text(strip=True) for p in cell.select(".wd-attr-term p")]
        options = [o for o in options if o]
        if options:
            attributes[label.get_text(strip=True).lower()] = options
    return build_variations(attributes, base_price)


def _from_variations_table(soup: BeautifulSoup, base_price: str) -> List[VariationRecord]:
    table = soup.select_one("table.variations")
    if table is None:
        return []
    attributes: Dict[str, List[str]] = {}
    for row in table.find_all("tr"):
        label = row.select_one("th.label label")
        select = row.find("select")
        if not label or not select:
            continue
        options = _select_options(select)
        if options:
            attributes[label.get_text(strip=True).lower()] = options
    return build_variations(attributes, base_price)


def _from_select_elements(soup: BeautifulSoup, base_price: str) -> List[VariationRecord]:
    attributes: Dict[str, List[str]] = {}
    for select in soup.select('select[name^="attribute_"]'):
        name = select.get("name", "")[len("attribute_"):]
        options = _select_options(select)
        if name and options:
            attributes[name] = options
    return build_variations(attributes, base_price)


VARIATION_STRATEGIES = [
    ("data-product_variations", _from_payload_attr),
    ("additional_information", _from_additional_info),
    ("variations_table", _from_variations_table),
    ("select_elements", _from_select_elements),
]


def extract_variations(soup: BeautifulSoup, base_price: str) -> Tuple[List[VariationRecord], Optional[str]]:
    """Try each variation strategy in order.

    Returns:
        (variations, name of the strategy that matched or None)
    """
    for method, strategy in VARIATION_STRATEGIES:
        variations = strategy(soup, base_price)
        if variations:
            logger.debug(f"Using variation method: {method}")
            return variations, method
    return [], None

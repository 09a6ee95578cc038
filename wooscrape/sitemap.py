"""Product URL discovery from XML sitemaps."""

import xml.etree.ElementTree as ET
from typing import List, Optional, Union

import requests  # type: ignore[import-untyped]

from wooscrape.config import HEADERS, REQUEST_TIMEOUT, SITEMAP_LOCATIONS
from wooscrape.errors import NoSitemapFound
from wooscrape.logging_config import get_logger, log_scrape_event
from wooscrape.url_validation import is_product_url, normalize_site_root

__all__ = [
    "discover_product_urls",
    "fetch_sitemap",
    "parse_sitemap",
    "read_url_locations",
    "read_sitemap_locations",
]

logger = get_logger("sitemap")


def _local_name(tag: str) -> str:
    """Drop the XML namespace: '{http://...}urlset' -> 'urlset'."""
    return tag.rsplit("}", 1)[-1]


def _child_locs(root: ET.Element, entry_tag: str) -> List[str]:
    locs: List[str] = []
    for entry in root:
        if _local_name(entry.tag) != entry_tag:
            continue
        for child in entry:
            if _local_name(child.tag) == "loc" and child.text and child.text.strip():
                locs.append(child.text.strip())
    return locs


def parse_sitemap(document: Union[bytes, str]) -> ET.Element:
    """Parse sitemap XML.

    Pass the raw response bytes so the parser honors the document's own
    encoding declaration.

    Raises:
        ET.ParseError: If the document is not well-formed XML
    """
    if isinstance(document, str):
        document = document.encode("utf-8")
    return ET.fromstring(document.strip())


def read_url_locations(root: ET.Element) -> List[str]:
    """Return every ``<url><loc>`` of a urlset document."""
    return _child_locs(root, "url")


def read_sitemap_locations(root: ET.Element) -> List[str]:
    """Return every ``<sitemap><loc>`` of a sitemap index document."""
    return _child_locs(root, "sitemap")


def fetch_sitemap(url: str, session: requests.Session) -> Optional[ET.Element]:
    """Fetch and parse one sitemap document.

    Returns None (and logs why) when the location is unusable: a non-2xx
    response, a network error, or a body that is not XML.
    """
    try:
        resp = session.get(url, timeout=REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        logger.warning(f"Error fetching sitemap {url}: {e}")
        return None

    if not 200 <= resp.status_code < 300:
        logger.info(f"Sitemap not found at {url} ({resp.status_code})")
        return None

    try:
        return parse_sitemap(resp.content)
    except ET.ParseError as e:
        logger.warning(f"Sitemap at {url} is not valid XML: {e}")
        return None


def _product_urls_from_urlset(root: ET.Element) -> List[str]:
    return [u for u in read_url_locations(root) if is_product_url(u)]


def _product_urls_from_index(root: ET.Element, session: requests.Session) -> List[str]:
    """Union product URLs of every sub-sitemap. One level only."""
    urls: List[str] = []
    sub_sitemaps = read_sitemap_locations(root)
    logger.info(f"Found sitemap index with {len(sub_sitemaps)} sub-sitemaps")

    for sub_url in sub_sitemaps:
        logger.debug(f"Checking sub-sitemap: {sub_url}")
        sub_root = fetch_sitemap(sub_url, session)
        if sub_root is None:
            continue
        if _local_name(sub_root.tag) != "urlset":
            logger.debug(f"Skipping nested sitemap index {sub_url}")
            continue
        found = _product_urls_from_urlset(sub_root)
        if found:
            logger.info(f"  Found {len(found)} product URLs in {sub_url}")
            urls.extend(found)
    return urls


def discover_product_urls(
    site_root: str,
    session: Optional[requests.Session] = None,
) -> List[str]:
    """Resolve a site root into its sorted, de-duplicated product URLs.

    Sitemap locations are tried in priority order; the first one that
    yields product URLs wins.

    Args:
        site_root: Site URL, e.g. https://shop.example.com
        session: Optional requests.Session (created if omitted)

    Returns:
        Product page URLs, sorted lexicographically

    Raises:
        NoSitemapFound: If no location produced any product URL
    """
    root_url = normalize_site_root(site_root)
    own_session = session is None
    sess = session or requests.Session()
    if own_session:
        sess.headers.update(HEADERS)

    product_urls: List[str] = []
    try:
        for location in SITEMAP_LOCATIONS:
            full_url = root_url + location
            logger.info(f"Checking sitemap at: {full_url}")

            root = fetch_sitemap(full_url, sess)
            if root is None:
                continue

            kind = _local_name(root.tag)
            if kind == "sitemapindex":
                product_urls.extend(_product_urls_from_index(root, sess))
            elif kind == "urlset":
                product_urls.extend(_product_urls_from_urlset(root))
            else:
                logger.warning(f"Unexpected sitemap root <{kind}> at {full_url}")

            if product_urls:
                logger.info(f"Found {len(product_urls)} product URLs via {location}")
                break
    finally:
        if own_session:
            sess.close()

    if not product_urls:
        raise NoSitemapFound(root_url)

    unique_urls = sorted(set(product_urls))
    logger.info(f"Total unique product URLs found: {len(unique_urls)}")
    for url in unique_urls[:3]:
        logger.debug(f"  - {url}")

    log_scrape_event("discovery_complete", {
        "site": root_url,
        "product_urls": len(unique_urls),
    })
    return unique_urls

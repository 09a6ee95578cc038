"""CSV export in the WooCommerce product import layout."""

import csv
import os
from typing import Iterable, List, Optional, Sequence, Tuple

from wooscrape.errors import WriteError
from wooscrape.logging_config import get_logger, log_scrape_event
from wooscrape.models import ExportRow, Product
from wooscrape.rows import expand

__all__ = [
    "BASE_COLUMNS",
    "build_fieldnames",
    "build_header",
    "write_rows_to_csv",
    "export_products_to_csv",
]

logger = get_logger("csv_utils")

# (field id, column title)
BASE_COLUMNS: List[Tuple[str, str]] = [
    ("id", "ID"),
    ("type", "Type"),
    ("sku", "SKU"),
    ("name", "Name"),
    ("published", "Published"),
    ("featured", "Is featured?"),
    ("visibility", "Visibility in catalog"),
    ("description", "Description"),
    ("tax_status", "Tax status"),
    ("in_stock", "In stock?"),
    ("stock", "Stock"),
    ("categories", "Categories"),
    ("tags", "Tags"),
    ("images", "Images"),
    ("parent", "Parent"),
    ("position", "Position"),
    ("regular_price", "Regular price"),
]


def _attribute_columns(max_attributes: int) -> List[Tuple[str, str]]:
    columns: List[Tuple[str, str]] = []
    for i in range(1, max_attributes + 1):
        columns.extend([
            (f"attribute{i}_name", f"Attribute {i} name"),
            (f"attribute{i}_values", f"Attribute {i} value(s)"),
            (f"attribute{i}_visible", f"Attribute {i} visible"),
            (f"attribute{i}_global", f"Attribute {i} global"),
        ])
    return columns


def build_fieldnames(max_attributes: int) -> List[str]:
    return [field for field, _ in BASE_COLUMNS + _attribute_columns(max_attributes)]


def build_header(max_attributes: int) -> List[str]:
    return [title for _, title in BASE_COLUMNS + _attribute_columns(max_attributes)]


def write_rows_to_csv(rows: Iterable[ExportRow], path: str, max_attributes: int) -> int:
    """Write export rows with a header sized for ``max_attributes``.

    Args:
        rows: Rows from the row expander
        path: Output CSV path (parent directories are created)
        max_attributes: Number of attribute column groups

    Returns:
        Number of rows written

    Raises:
        WriteError: If the file cannot be created or written
    """
    fieldnames = build_fieldnames(max_attributes)
    titles = dict(zip(fieldnames, build_header(max_attributes)))

    count = 0
    try:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, extrasaction="ignore")
            writer.writerow(titles)
            for row in rows:
                writer.writerow(row.to_dict(max_attributes))
                count += 1
    except OSError as e:
        logger.error(f"Could not write {path}: {e}")
        raise WriteError(path, str(e)) from e

    return count


def export_products_to_csv(products: Sequence[Optional[Product]], path: str) -> int:
    """Expand products into rows and write them to ``path``.

    Returns:
        Number of rows written
    """
    if not products:
        logger.warning("No products to export, writing header only")

    expanded = expand(products)
    count = write_rows_to_csv(expanded.rows, path, expanded.max_attributes)

    logger.info(f"Exported {count} rows for {len(products)} products to {path}")
    log_scrape_event("export_complete", {
        "path": path,
        "products": len(products),
        "rows": count,
        "max_attributes": expanded.max_attributes,
    })
    return count

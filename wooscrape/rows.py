"""Expand product records into parent/variation export rows.

Simple products become one row. Variable products become one ``variable``
parent row followed by one ``variation`` row per variation, linked through
``parent = "id:<parent id>"``.

The number of attribute column groups is taken from the *first* variation
of each variable product. A later variation carrying more attributes than
the first loses the extra ones in the export.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from wooscrape.config import DEFAULT_STOCK, EXPORT_ID_BASE, SKU_BASE_LENGTH
from wooscrape.logging_config import get_logger
from wooscrape.models import (
    AttributeColumn,
    ExportRow,
    Product,
    SimpleProduct,
    StockStatus,
    VariableProduct,
    VariationRecord,
)

__all__ = [
    "ExpandedRows",
    "compute_max_attributes",
    "sku_base",
    "expand_products",
    "expand",
]

logger = get_logger("rows")


@dataclass
class ExpandedRows:
    rows: List[ExportRow]
    max_attributes: int


def compute_max_attributes(products: Iterable[Optional[Product]]) -> int:
    """Widest first-variation attribute set over all variable products."""
    max_attributes = 0
    for product in products:
        if isinstance(product, VariableProduct) and product.has_variations:
            max_attributes = max(max_attributes, len(product.variations[0].attributes))
    return max_attributes


def sku_base(name: str) -> str:
    """Alphanumerics of the product name, first 15 characters."""
    return re.sub(r"[^a-zA-Z0-9]", "", name or "")[:SKU_BASE_LENGTH]


def _common_fields(product: Product) -> Dict[str, str]:
    return {
        "description": product.full_description,
        "stock": DEFAULT_STOCK,
        "categories": ", ".join(product.categories),
        "tags": ", ".join(product.tags),
        "images": ",".join(product.images),
    }


def _parent_attributes(variations: Sequence[VariationRecord]) -> Dict[int, AttributeColumn]:
    """Attribute columns for a parent row: every value seen, de-duplicated."""
    columns: Dict[int, AttributeColumn] = {}
    for idx, attr_name in enumerate(variations[0].attributes, start=1):
        if not attr_name:
            continue
        values: List[str] = []
        for variation in variations:
            value = variation.attributes.get(attr_name)
            if value and value not in values:
                values.append(value)
        columns[idx] = AttributeColumn(
            name=attr_name,
            values=", ".join(values),
            visible="1",
            is_global="1" if idx == 1 else "0",
        )
    return columns


def _variation_attributes(variation: VariationRecord) -> Dict[int, AttributeColumn]:
    return {
        idx: AttributeColumn(name=name, values=value, visible="1", is_global="1")
        for idx, (name, value) in enumerate(variation.attributes.items(), start=1)
        if name and value
    }


def _simple_row(row_id: int, product: SimpleProduct) -> ExportRow:
    return ExportRow(
        id=row_id,
        type="simple",
        sku=sku_base(product.name),
        name=product.name,
        regular_price=product.regular_price,
        **_common_fields(product),
    )


def _variable_rows(first_id: int, product: VariableProduct) -> List[ExportRow]:
    base = sku_base(product.name)
    parent = ExportRow(
        id=first_id,
        type="variable",
        sku=base,
        name=product.name,
        **_common_fields(product),
    )
    if not product.has_variations:
        logger.warning(
            f"Variable product '{product.name}' has no variations; exporting parent row only"
        )
        return [parent]

    parent.attributes = _parent_attributes(product.variations)
    rows = [parent]

    for position, variation in enumerate(product.variations, start=1):
        values = list(variation.attributes.values())
        suffix = re.sub(r"\s+", "", "-".join(values))
        rows.append(ExportRow(
            id=first_id + position,
            type="variation",
            sku=f"{base}-{suffix}",
            name=f"{product.name} - {' '.join(values)}",
            in_stock="0" if variation.stock_status == StockStatus.OUT_OF_STOCK else "1",
            stock=DEFAULT_STOCK,
            images=variation.image,
            parent=f"id:{first_id}",
            position=position,
            regular_price=variation.price,
            attributes=_variation_attributes(variation),
        ))
    return rows


def expand_products(
    products: Iterable[Optional[Product]],
    id_base: int = EXPORT_ID_BASE,
) -> List[ExportRow]:
    """Turn products into export rows, IDs counting up from ``id_base``.

    ``None`` entries are skipped and use up no ID. The input is not
    modified, so expanding the same list twice gives equal rows.
    """
    rows: List[ExportRow] = []
    next_id = id_base

    for product in products:
        if product is None:
            continue
        if isinstance(product, VariableProduct):
            emitted = _variable_rows(next_id, product)
        elif isinstance(product, SimpleProduct):
            emitted = [_simple_row(next_id, product)]
        else:
            raise TypeError(f"Unsupported product type: {type(product).__name__}")
        rows.extend(emitted)
        next_id += len(emitted)

    return rows


def expand(products: Sequence[Optional[Product]], id_base: int = EXPORT_ID_BASE) -> ExpandedRows:
    """Both passes: column width, then row expansion."""
    return ExpandedRows(
        rows=expand_products(products, id_base=id_base),
        max_attributes=compute_max_attributes(products),
    )

"""Data models for scraped products and export rows."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Union

__all__ = [
    "ProductKind",
    "StockStatus",
    "VariationRecord",
    "SimpleProduct",
    "VariableProduct",
    "Product",
    "AttributeColumn",
    "ExportRow",
]


class ProductKind(str, Enum):
    SIMPLE = "simple"
    VARIABLE = "variable"


class StockStatus(str, Enum):
    IN_STOCK = "instock"
    OUT_OF_STOCK = "outofstock"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class VariationRecord:
    """One purchasable combination of a variable product's attributes."""

    attributes: Dict[str, str] = field(default_factory=dict)
    price: str = ""
    sku: str = ""
    stock_status: StockStatus = StockStatus.UNKNOWN
    image: str = ""


@dataclass(frozen=True)
class _ProductBase:
    name: str = ""
    url: str = ""
    short_description: str = ""
    full_description: str = ""
    regular_price: str = ""
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    images: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SimpleProduct(_ProductBase):
    """A catalog entry with one price and no combinable options."""

    @property
    def kind(self) -> ProductKind:
        return ProductKind.SIMPLE


@dataclass(frozen=True)
class VariableProduct(_ProductBase):
    """A catalog entry whose attribute combinations form variations.

    ``variations`` may be empty when no extraction strategy matched the
    page markup; the product stays variable so the gap shows up in logs
    and in the export instead of being passed off as a simple product.
    """

    variations: List[VariationRecord] = field(default_factory=list)

    @property
    def kind(self) -> ProductKind:
        return ProductKind.VARIABLE

    @property
    def has_variations(self) -> bool:
        return len(self.variations) > 0


Product = Union[SimpleProduct, VariableProduct]


@dataclass
class AttributeColumn:
    """One ``Attribute N name/value(s)/visible/global`` column group."""

    name: str
    values: str
    visible: str = "1"
    is_global: str = "1"


@dataclass
class ExportRow:
    """One line of the CSV export.

    Parent rows (``simple``/``variable``) own an ID; ``variation`` rows
    point back to their parent through ``parent`` (``id:<parent id>``).
    ``attributes`` maps 1-based column position to its column group.
    """

    id: int
    type: str
    sku: str = ""
    name: str = ""
    published: str = "1"
    featured: str = "0"
    visibility: str = "visible"
    description: str = ""
    tax_status: str = "taxable"
    in_stock: str = "1"
    stock: str = ""
    categories: str = ""
    tags: str = ""
    images: str = ""
    parent: str = ""
    position: int = 0
    regular_price: str = ""
    attributes: Dict[int, AttributeColumn] = field(default_factory=dict)

    def to_dict(self, max_attributes: int) -> Dict[str, Union[str, int]]:
        """Flatten into a CSV row keyed by field id.

        Attribute positions above ``max_attributes`` are not emitted.
        """
        row: Dict[str, Union[str, int]] = {
            "id": self.id,
            "type": self.type,
            "sku": self.sku,
            "name": self.name,
            "published": self.published,
            "featured": self.featured,
            "visibility": self.visibility,
            "description": self.description,
            "tax_status": self.tax_status,
            "in_stock": self.in_stock,
            "stock": self.stock,
            "categories": self.categories,
            "tags": self.tags,
            "images": self.images,
            "parent": self.parent,
            "position": self.position,
            "regular_price": self.regular_price,
        }
        for i in range(1, max_attributes + 1):
            column = self.attributes.get(i)
            row[f"attribute{i}_name"] = column.name if column else ""
            row[f"attribute{i}_values"] = column.values if column else ""
            row[f"attribute{i}_visible"] = column.visible if column else ""
            row[f"attribute{i}_global"] = column.is_global if column else ""
        return row

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

# Selector fields that callers may override per scrape, keyed by their wire names.
SELECTOR_ALIASES: Dict[str, str] = {
    "productLink": "product_link",
    "title": "title",
    "price": "price",
    "salePrice": "sale_price",
    "description": "description",
    "images": "images",
    "sku": "sku",
}

_NON_SELECTOR_FIELDS = ("key", "listing_path", "product_href_contains", "use_json_ld")


@dataclass(frozen=True)
class FieldSelectorProfile:
    """
    Per-platform mapping from logical product fields to CSS selectors.

    Profiles are immutable; ``with_overrides`` returns a copy. The optional
    selectors (``short_description`` onwards) may be None when a platform has
    no reliable markup for them.
    """

    key: str
    product_link: str
    title: str
    price: str
    sale_price: str
    description: str
    images: str
    sku: str
    short_description: Optional[str] = None
    in_stock: Optional[str] = None
    categories: Optional[str] = None
    tags: Optional[str] = None
    # Path tried under the seed when crawling found no product links.
    listing_path: Optional[str] = None
    # Candidate product URLs must contain this substring.
    product_href_contains: Optional[str] = None
    # Fill empty fields from an embedded schema.org Product block.
    use_json_ld: bool = False

    def with_overrides(self, **selectors: Optional[str]) -> "FieldSelectorProfile":
        changes: Dict[str, str] = {}
        for name, value in selectors.items():
            attr = SELECTOR_ALIASES.get(name, name)
            if attr not in SELECTOR_ALIASES.values():
                raise ValueError(f"Unknown selector field {name!r}")
            if value:
                changes[attr] = value
        return replace(self, **changes) if changes else self

    def selectors(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name in _NON_SELECTOR_FIELDS or not value:
                continue
            out[f.name] = value
        return out

    def validate(self) -> None:
        """Raise ValueError if any selector fails to compile."""
        probe = BeautifulSoup("", "html.parser")
        for name, selector in self.selectors().items():
            try:
                probe.select(selector)
            except Exception as exc:
                raise ValueError(f"Invalid {name} selector {selector!r}: {exc}") from exc


@dataclass
class ProductRecord:
    """
    One extracted product, shaped after the WooCommerce product CSV import.

    Only ``name`` is guaranteed non-empty; the other scraped fields fall back
    to empty strings. ``images`` lists archive paths that were actually stored.
    """

    name: str
    sku: str = ""
    regular_price: str = ""
    sale_price: str = ""
    short_description: str = ""
    description: str = ""
    images: str = ""
    categories: str = ""
    tags: str = ""
    in_stock: int = 1
    id: str = ""
    type: str = "simple"
    published: int = 1
    is_featured: str = "no"
    visibility: str = "visible"
    tax_status: str = "taxable"
    tax_class: str = ""
    stock: str = ""
    backorders: str = "no"
    weight: str = ""
    length: str = ""
    width: str = ""
    height: str = ""
    allow_customer_reviews: int = 1
    purchase_note: str = ""
    shipping_class: str = ""

    def to_dict(self) -> Dict[str, Any]:
        # Column order matches the import format, not the field order above.
        return {
            "id": self.id,
            "type": self.type,
            "sku": self.sku,
            "name": self.name,
            "published": self.published,
            "isFeatured": self.is_featured,
            "visibility": self.visibility,
            "shortDescription": self.short_description,
            "description": self.description,
            "salePrice": self.sale_price,
            "regularPrice": self.regular_price,
            "taxStatus": self.tax_status,
            "taxClass": self.tax_class,
            "inStock": self.in_stock,
            "stock": self.stock,
            "backorders": self.backorders,
            "weight": self.weight,
            "length": self.length,
            "width": self.width,
            "height": self.height,
            "allowCustomerReviews": self.allow_customer_reviews,
            "purchaseNote": self.purchase_note,
            "shippingClass": self.shipping_class,
            "images": self.images,
            "categories": self.categories,
            "tags": self.tags,
        }

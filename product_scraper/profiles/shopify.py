from __future__ import annotations

from .base import FieldSelectorProfile

# Shopify themes vary a lot; the embedded Product JSON-LD fills the gaps.
SHOPIFY = FieldSelectorProfile(
    key="shopify",
    product_link='a[href*="/products/"]',
    title="h1.product__title, h1.product-single__title, h1",
    price='.price__regular .price-item, meta[property="og:price:amount"], meta[property="product:price:amount"]',
    sale_price=".price--on-sale .price-item--sale",
    description=".product__description, .product-single__description",
    images=".product__media img, .product-single__photo img",
    sku=".product__sku, [itemprop='sku']",
    listing_path="/collections/all",
    product_href_contains="/products/",
    use_json_ld=True,
)

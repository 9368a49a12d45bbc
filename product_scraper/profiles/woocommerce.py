from __future__ import annotations

from .base import FieldSelectorProfile

WOOCOMMERCE = FieldSelectorProfile(
    key="woocommerce",
    product_link=".product a, .type-product a, .woocommerce-LoopProduct-link",
    title="h1.product_title, .product_title, h1",
    price=".price .amount, .price",
    sale_price=".price ins .amount",
    description="#tab-description, .product-description, .woocommerce-product-details__short-description",
    images=".woocommerce-product-gallery__image a, .product-images a, .product-gallery a",
    sku=".sku",
    short_description=".woocommerce-product-details__short-description",
    in_stock=".stock.in-stock, .in-stock",
    categories=".posted_in a",
    tags=".tagged_as a",
    listing_path="/shop/",
    product_href_contains="/product/",
)

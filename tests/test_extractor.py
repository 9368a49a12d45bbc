"""Product page extraction against the built-in selector profiles."""

from __future__ import annotations

import pytest

from conftest import product_page
from product_scraper.engines.archiver import AssetArchiver
from product_scraper.engines.extractor import ProductExtractor
from product_scraper.export.archive import ImageArchive
from product_scraper.profiles.shopify import SHOPIFY
from product_scraper.profiles.woocommerce import WOOCOMMERCE

URL = "https://shop.example/product/mug"


@pytest.fixture
def archive() -> ImageArchive:
    return ImageArchive()


@pytest.fixture
def extractor(fetcher, archive) -> ProductExtractor:
    return ProductExtractor(fetcher, AssetArchiver(fetcher, archive))


@pytest.mark.asyncio
async def test_basic_woocommerce_product(session, extractor, archive) -> None:
    session.routes[URL] = product_page(
        "Mug",
        images=["https://shop.example/uploads/mug.jpg?v=2"],
        extra="""
          <div class="woocommerce-product-details__short-description">A sturdy mug.</div>
          <p class="stock in-stock">In stock</p>
          <span class="posted_in"><a>Kitchen</a><a>Cups</a></span>
          <span class="tagged_as"><a>ceramic</a><a>gift</a></span>
        """,
    )
    session.routes["https://shop.example/uploads/mug.jpg?v=2"] = b"jpeg"

    record = await extractor.extract(URL, WOOCOMMERCE)

    assert record is not None
    assert record.name == "Mug"
    assert record.sku == "SKU-Mug"
    assert record.regular_price == "10.00"
    assert record.sale_price == ""
    assert record.description == "<p>About Mug</p>"
    assert record.short_description == "A sturdy mug."
    assert record.images == "images/mug.jpg"
    assert record.in_stock == 1
    assert record.categories == "Kitchen > Cups"
    assert record.tags == "ceramic, gift"
    assert "images/mug.jpg" in archive


@pytest.mark.asyncio
async def test_sale_price_uses_struck_regular_price(session, extractor) -> None:
    session.routes[URL] = product_page(
        "Mug",
        price='<del><span class="amount">$20.00</span></del> <ins><span class="amount">$15.50</span></ins>',
    )

    record = await extractor.extract(URL, WOOCOMMERCE)

    assert record.sale_price == "15.50"
    assert record.regular_price == "20.00"
    assert record.in_stock == 0


@pytest.mark.asyncio
async def test_sale_without_struck_price_falls_back_to_price_text(session, extractor) -> None:
    session.routes[URL] = product_page("Mug", price='<ins><span class="amount">$9</span></ins>')

    record = await extractor.extract(URL, WOOCOMMERCE)

    assert record.sale_price == "9"
    assert record.regular_price == "9"


@pytest.mark.asyncio
async def test_missing_title_is_not_a_product(session, extractor) -> None:
    session.routes[URL] = """
      <h1 class="product_title">   </h1>
      <p class="price"><span class="amount">$5</span></p>
      <span class="sku">ABC</span>
      <div id="tab-description">Rich description</div>
    """

    assert await extractor.extract(URL, WOOCOMMERCE) is None


@pytest.mark.asyncio
async def test_missing_optional_fields_become_empty(session, extractor) -> None:
    session.routes[URL] = "<h1>Bare Product</h1>"

    record = await extractor.extract(URL, WOOCOMMERCE)

    assert record.name == "Bare Product"
    assert (record.sku, record.regular_price, record.description, record.images) == ("", "", "", "")


@pytest.mark.asyncio
async def test_short_description_is_truncated(session, extractor) -> None:
    long_text = "word " * 100
    session.routes[URL] = f'<h1>Long</h1><div class="product-description"><p>{long_text}</p></div>'

    record = await extractor.extract(URL, WOOCOMMERCE)

    assert len(record.short_description) == 200
    assert record.description.startswith("<p>word word")


@pytest.mark.asyncio
async def test_unreachable_page_yields_none(session, extractor) -> None:
    session.routes[URL] = 500

    assert await extractor.extract(URL, WOOCOMMERCE) is None


@pytest.mark.asyncio
async def test_broken_selector_yields_none(session, extractor) -> None:
    session.routes[URL] = product_page("Mug")
    broken = WOOCOMMERCE.with_overrides(sku="span[")

    assert await extractor.extract(URL, broken) is None


@pytest.mark.asyncio
async def test_image_src_is_used_when_href_missing(session, extractor) -> None:
    session.routes[URL] = '<h1>Mug</h1><div class="product-gallery"><img src="/img/a.png"></div>'
    session.routes["https://shop.example/img/a.png"] = b"png"
    profile = WOOCOMMERCE.with_overrides(images=".product-gallery img")

    record = await extractor.extract(URL, profile)

    assert record.images == "images/a.png"


@pytest.mark.asyncio
async def test_shopify_fills_gaps_from_json_ld(session, extractor, archive) -> None:
    url = "https://store.example/products/tee"
    session.routes[url] = """
      <h1 class="product__title">Tee</h1>
      <script type="application/ld+json">
        {"@context": "https://schema.org", "@type": "Product", "name": "Tee (JSON)",
         "sku": "TEE-1", "description": "<p>Soft, cotton tee</p>",
         "image": ["https://cdn.example/tee.jpg?v=1"],
         "offers": {"@type": "Offer", "price": "25.00"}}
      </script>
    """
    session.routes["https://cdn.example/tee.jpg?v=1"] = b"jpg"

    record = await extractor.extract(url, SHOPIFY)

    assert record.name == "Tee"
    assert record.sku == "TEE-1"
    assert record.regular_price == "25.00"
    assert record.description == "<p>Soft, cotton tee</p>"
    assert record.short_description == "Soft, cotton tee"
    assert record.images == "images/tee.jpg"
    assert record.in_stock == 1


@pytest.mark.asyncio
async def test_json_ld_never_replaces_the_title_gate(session, extractor) -> None:
    url = "https://store.example/products/ghost"
    session.routes[url] = """
      <script type="application/ld+json">{"@type": "Product", "name": "Ghost"}</script>
    """

    assert await extractor.extract(url, SHOPIFY) is None

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup

from .archiver import AssetArchiver
from ..errors import ParseFailure
from ..export.archive import image_path
from ..profiles.base import FieldSelectorProfile, ProductRecord
from ..utils.http import Fetcher
from ..utils.parsing import (
    all_texts,
    clean_price,
    find_jsonld_product,
    first_text,
    image_source,
    jsonld_images,
    jsonld_price,
    node_text,
)

logger = logging.getLogger(__name__)

SHORT_DESCRIPTION_LIMIT = 200


class ProductExtractor:
    """
    Turns a product page into a ``ProductRecord``.

    The title selector is the gate: a page without title text is not a
    product and yields None. Every other field degrades to an empty string.
    Fetch and parse failures are logged and also yield None.
    """

    def __init__(self, fetcher: Fetcher, archiver: AssetArchiver) -> None:
        self.fetcher = fetcher
        self.archiver = archiver

    async def extract(self, url: str, profile: FieldSelectorProfile) -> Optional[ProductRecord]:
        try:
            page = await self.fetcher.get(url)
            soup = BeautifulSoup(page.text, "html.parser")
            fields = self.parse(soup, profile)
            if fields is None:
                return None
            image_urls = fields.pop("image_urls")
            filenames = await self.archiver.archive_images(image_urls, url)
        except Exception as exc:
            logger.warning("Failed to scrape %s page %s: %s", profile.key, url, exc)
            return None

        return ProductRecord(images=", ".join(image_path(f) for f in filenames), **fields)

    def parse(self, soup: BeautifulSoup, profile: FieldSelectorProfile) -> Optional[Dict[str, Any]]:
        """
        Read every field from a parsed page. Returns None when the title is
        missing; image URLs come back under ``image_urls`` for archiving.
        """
        try:
            name = first_text(soup, profile.title)
            if not name:
                return None

            regular_price, sale_price = self._prices(soup, profile)
            description_el = soup.select_one(profile.description)
            description = description_el.decode_contents().strip() if description_el else ""
            short = first_text(soup, profile.short_description) or node_text(description_el)
            fields: Dict[str, Any] = {
                "name": name,
                "sku": first_text(soup, profile.sku),
                "regular_price": regular_price,
                "sale_price": sale_price,
                "description": description,
                "short_description": " ".join(short.split())[:SHORT_DESCRIPTION_LIMIT],
                "categories": " > ".join(all_texts(soup, profile.categories)),
                "tags": ", ".join(all_texts(soup, profile.tags)),
                "in_stock": 1 if not profile.in_stock or soup.select_one(profile.in_stock) else 0,
                "image_urls": self._image_urls(soup, profile),
            }
        except Exception as exc:
            raise ParseFailure(f"{profile.key} selectors failed: {exc}") from exc

        if profile.use_json_ld:
            self._fill_from_jsonld(soup, fields)
        return fields

    def _prices(self, soup: BeautifulSoup, profile: FieldSelectorProfile) -> Tuple[str, str]:
        price_el = soup.select_one(profile.price)
        sale_price = clean_price(first_text(soup, profile.sale_price))
        if not sale_price:
            return clean_price(node_text(price_el)), ""

        struck = price_el.select_one("del") if price_el is not None else None
        regular_price = clean_price(node_text(struck)) or clean_price(node_text(price_el))
        return regular_price, sale_price

    def _image_urls(self, soup: BeautifulSoup, profile: FieldSelectorProfile) -> List[str]:
        urls: List[str] = []
        for el in soup.select(profile.images):
            src = image_source(el)
            if src and src not in urls:
                urls.append(src)
        return urls

    def _fill_from_jsonld(self, soup: BeautifulSoup, fields: Dict[str, Any]) -> None:
        item = find_jsonld_product(soup)
        if item is None:
            return
        if not fields["sku"] and item.get("sku"):
            fields["sku"] = str(item["sku"]).strip()
        if not fields["regular_price"] and not fields["sale_price"]:
            fields["regular_price"] = jsonld_price(item)
        if not fields["description"] and isinstance(item.get("description"), str):
            fields["description"] = item["description"].strip()
            if not fields["short_description"]:
                text = BeautifulSoup(fields["description"], "html.parser").get_text(" ")
                fields["short_description"] = " ".join(text.split())[:SHORT_DESCRIPTION_LIMIT]
        if not fields["image_urls"]:
            fields["image_urls"] = jsonld_images(item)

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

STATIC_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".pdf", ".zip", ".css", ".js")

_PRICE_NOISE = re.compile(r"[^0-9.,]")


def normalize_url(url: str) -> str:
    """
    Strip the fragment, leaving everything else byte-for-byte intact.
    """
    return url.split("#", 1)[0]


def normalize_seed(url: str) -> str:
    """
    Give a bare origin its root path so prefix checks line up with resolved links.
    """
    url = normalize_url(url.strip())
    parsed = urlparse(url)
    if parsed.netloc and not parsed.path:
        return url + "/"
    return url


def resolve_url(href: Optional[str], base_url: str) -> Optional[str]:
    """
    Resolve ``href`` against ``base_url`` and drop the fragment.
    Returns None for empty or unparseable hrefs.
    """
    if not href:
        return None
    href = href.strip()
    if not href:
        return None
    try:
        absolute = urljoin(base_url, href)
    except ValueError:
        return None
    return normalize_url(absolute)


def in_scope(url: str, seed: str, *, strict: bool = False) -> bool:
    """
    Legacy mode is a plain string-prefix test against the seed.
    Strict mode compares scheme and host, then the path on a segment boundary.
    """
    if not strict:
        return url.startswith(seed)

    target, root = urlparse(url), urlparse(seed)
    if (target.scheme, target.netloc.lower()) != (root.scheme, root.netloc.lower()):
        return False
    root_path = root.path or "/"
    path = target.path or "/"
    if root_path.endswith("/"):
        return path.startswith(root_path)
    return path == root_path or path.startswith(root_path + "/")


def is_static_asset(url: str) -> bool:
    return urlparse(url).path.lower().endswith(STATIC_EXTENSIONS)


def clean_price(text: str) -> str:
    """
    Keep digits and separators only; '$1,299.00' -> '1,299.00'.
    """
    return _PRICE_NOISE.sub("", text or "").strip(".,")


def node_text(node: Optional[Tag]) -> str:
    if node is None:
        return ""
    if node.name == "meta":
        return (node.get("content") or "").strip()
    return node.get_text().strip()


def first_text(soup: BeautifulSoup | Tag, selector: Optional[str]) -> str:
    if not selector:
        return ""
    return node_text(soup.select_one(selector))


def all_texts(soup: BeautifulSoup | Tag, selector: Optional[str]) -> List[str]:
    if not selector:
        return []
    return [t for t in (node_text(el) for el in soup.select(selector)) if t]


def image_source(node: Tag) -> Optional[str]:
    """
    Gallery anchors carry the full-size image in ``href``; bare images in ``src``.
    """
    for attr in ("href", "src", "data-src", "content"):
        value = node.get(attr)
        if isinstance(value, str) and value.strip() and not value.startswith("data:"):
            return value.strip()
    return None


# ---- JSON-LD ---------------------------------------------------------------


def find_jsonld_product(soup: BeautifulSoup) -> Optional[Dict[str, Any]]:
    """Return the first schema.org Product block embedded in the page."""

    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        payload = script.string or script.get_text() or ""
        try:
            data = json.loads(payload)
        except json.JSONDecodeError:
            continue

        for item in _iter_jsonld_items(data):
            if _is_product(item):
                return item
    return None


def jsonld_images(item: Dict[str, Any]) -> List[str]:
    raw = item.get("image")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raw = [raw]
    out: List[str] = []
    for entry in raw:
        if isinstance(entry, str):
            out.append(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("url"), str):
            out.append(entry["url"])
    return out


def jsonld_price(item: Dict[str, Any]) -> str:
    offers = item.get("offers")
    if isinstance(offers, list) and offers:
        offers = offers[0]
    if not isinstance(offers, dict):
        return ""
    price = offers.get("price") or offers.get("lowPrice")
    return "" if price is None else clean_price(str(price))


def _iter_jsonld_items(data: Any) -> Iterable[Any]:
    if isinstance(data, list):
        for item in data:
            yield from _iter_jsonld_items(item)
    elif isinstance(data, dict):
        if "@graph" in data:
            yield from _iter_jsonld_items(data["@graph"])
        else:
            yield data


def _is_product(item: Any) -> bool:
    if not isinstance(item, dict):
        return False
    type_field = item.get("@type")
    if isinstance(type_field, list):
        return any(t.lower() == "product" for t in type_field if isinstance(t, str))
    if isinstance(type_field, str):
        return type_field.lower() == "product"
    return False

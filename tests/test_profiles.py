"""Selector profiles and the profile registry."""

from __future__ import annotations

import dataclasses

import pytest

from product_scraper.errors import UnknownPlatform
from product_scraper.profiles.base import FieldSelectorProfile
from product_scraper.profiles.registry import ProfileRegistry
from product_scraper.profiles.woocommerce import WOOCOMMERCE

CUSTOM = FieldSelectorProfile(
    key="custom",
    product_link="a.card",
    title="h1",
    price=".cost",
    sale_price=".cost .deal",
    description=".body",
    images=".gallery img",
    sku=".code",
)


def make_custom() -> FieldSelectorProfile:
    return dataclasses.replace(CUSTOM, key="factory")


def test_builtins_and_default() -> None:
    registry = ProfileRegistry()
    assert set(registry.keys()) >= {"woocommerce", "shopify"}
    assert registry.get(None) is WOOCOMMERCE
    assert registry.get(" WooCommerce ") is WOOCOMMERCE


def test_unknown_platform() -> None:
    with pytest.raises(UnknownPlatform):
        ProfileRegistry().get("magento")


def test_overrides_return_new_profile() -> None:
    custom = WOOCOMMERCE.with_overrides(productLink="a.tile", salePrice=None, title="")

    assert custom.product_link == "a.tile"
    assert custom.title == WOOCOMMERCE.title
    assert WOOCOMMERCE.product_link != "a.tile"
    with pytest.raises(dataclasses.FrozenInstanceError):
        custom.title = "h2"  # type: ignore[misc]


def test_unknown_override_rejected() -> None:
    with pytest.raises(ValueError):
        WOOCOMMERCE.with_overrides(colour=".swatch")


def test_validate_flags_bad_selector() -> None:
    WOOCOMMERCE.validate()
    with pytest.raises(ValueError, match="title"):
        WOOCOMMERCE.with_overrides(title="h1[").validate()


def test_dotted_profiles_load_instances_and_factories() -> None:
    registry = ProfileRegistry()

    added = registry.load_dotted([
        "test_profiles:CUSTOM",
        "test_profiles:make_custom",
        "test_profiles:does_not_exist",
    ])

    assert added == 2
    assert registry.get("custom") is CUSTOM
    assert registry.get("factory").product_link == "a.card"

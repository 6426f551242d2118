"""Tests for ProductSelector listing filters."""

import pytest

from inventory_kernel.domain.values import ProductFilter
from inventory_kernel.selectors.product_selector import ProductSelector


@pytest.fixture
def selector(session):
    return ProductSelector(session)


@pytest.fixture
def catalog(create_product):
    return {
        "hammer": create_product(name="Claw Hammer", sku="HAM-1", category="Tools",
                                 brand="Acme", location="A-1", quantity=10, safety_stock=5),
        "saw": create_product(name="Hand Saw", sku="SAW-1", category="Tools",
                              brand="Bolt", location="A-2", quantity=2, safety_stock=2),
        "paint": create_product(name="White Paint", sku="PNT-1", category="Paint",
                                brand="Acme", location="B-1", quantity=0, safety_stock=3),
    }


def _skus(products):
    return {p.sku for p in products}


class TestProductSelector:

    def test_empty_filter_lists_everything(self, selector, catalog):
        assert _skus(selector.list()) == {"HAM-1", "SAW-1", "PNT-1"}

    def test_search_matches_name_case_insensitive(self, selector, catalog):
        assert _skus(selector.list(ProductFilter(search="hammer"))) == {"HAM-1"}

    def test_search_matches_sku(self, selector, catalog):
        assert _skus(selector.list(ProductFilter(search="pnt"))) == {"PNT-1"}

    def test_category_filter(self, selector, catalog):
        assert _skus(selector.list(ProductFilter(category="Tools"))) == {"HAM-1", "SAW-1"}

    def test_brand_and_location_combined(self, selector, catalog):
        result = selector.list(ProductFilter(brand="Acme", location="B-1"))

        assert _skus(result) == {"PNT-1"}

    def test_low_stock_compares_each_product_to_its_own_safety_stock(self, selector, catalog):
        low = selector.low_stock()

        # quantity == safety_stock counts as low
        assert _skus(low) == {"SAW-1", "PNT-1"}
        assert all(p.is_low_stock for p in low)

    def test_no_match(self, selector, catalog):
        assert selector.list(ProductFilter(category="Garden")) == ()

from datetime import datetime

import pytest

from storefront.services.catalog_service import CatalogService
from storefront.services.errors import PersistenceFailure


@pytest.fixture
def catalog(session_factory):
    return CatalogService(session_factory)


def _names(result):
    return [p["name"] for p in result["items"]]


def test_featured_first_then_newest_then_id(catalog, make_product):
    make_product(name="Old Featured", is_featured=True, created_at=datetime(2023, 1, 1))
    make_product(name="Newest", created_at=datetime(2024, 6, 1))
    make_product(name="Tie B", id="tie-b", created_at=datetime(2024, 3, 1))
    make_product(name="Tie A", id="tie-a", created_at=datetime(2024, 3, 1))

    assert _names(catalog.list_products()) == ["Old Featured", "Newest", "Tie A", "Tie B"]
    assert _names(catalog.list_products(featured_first=False)) == ["Newest", "Tie A", "Tie B", "Old Featured"]


def test_only_active_products_by_default(catalog, make_product):
    make_product(name="Visible")
    make_product(name="Hidden", is_active=False)

    assert _names(catalog.list_products()) == ["Visible"]
    assert sorted(_names(catalog.list_products(active_only=False))) == ["Hidden", "Visible"]


def test_search_is_case_insensitive_literal_substring(catalog, make_product):
    make_product(name="Blue Widget")
    make_product(name="100% Cotton Tee")
    make_product(name="Gadget")

    assert _names(catalog.list_products(search="wIDg")) == ["Blue Widget"]
    assert _names(catalog.list_products(search="%")) == ["100% Cotton Tee"]
    assert _names(catalog.list_products(search="_")) == []


def test_no_match_is_an_empty_page(catalog, make_product):
    make_product(name="Lamp")
    result = catalog.list_products(search="sofa")
    assert result["items"] == []
    assert result["total"] == 0


def test_category_filter_and_paging(catalog, make_product, make_category):
    mugs = make_category("Mugs")
    for i in range(3):
        make_product(name=f"Mug {i}", category_id=mugs)
    make_product(name="Plate")

    assert catalog.list_products(category="mugs")["total"] == 3
    page = catalog.list_products(page=2, page_size=3)
    assert page["total"] == 4
    assert len(page["items"]) == 1
    assert catalog.list_products(page="x", page_size=500)["page_size"] == 100


def test_get_product_by_id_or_slug(catalog, make_product):
    pid = make_product(name="Lamp", slug="lamp")
    hidden = make_product(name="Secret", is_active=False)

    assert catalog.get_product(pid)["slug"] == "lamp"
    assert catalog.get_product("lamp")["id"] == pid
    assert catalog.get_product(hidden) == {}
    assert catalog.get_product("") == {}


def test_categories_are_ordered(catalog, make_category):
    make_category("Zebra", display_order=0)
    make_category("Apple", display_order=0)
    make_category("First", display_order=-1)
    make_category("Off", is_active=False)

    assert [c["name"] for c in catalog.list_categories()] == ["First", "Apple", "Zebra"]


def test_database_errors_become_persistence_failures(unavailable_session_factory):
    catalog = CatalogService(unavailable_session_factory)
    with pytest.raises(PersistenceFailure):
        catalog.list_products()
    with pytest.raises(PersistenceFailure):
        catalog.get_product("anything")
    with pytest.raises(PersistenceFailure):
        catalog.list_categories()

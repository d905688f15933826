import json

import pytest
from pydantic import ValidationError

from shopping_assistant import catalog as catalog_module
from shopping_assistant.catalog import CatalogLoader, build_search_predicate
from shopping_assistant.models import Product


def test_load_bundled_catalog(catalog):
    """Six products ship with the app, in file order"""
    assert len(catalog) == 6
    assert [p.id for p in catalog.products] == ["1", "2", "3", "4", "5", "6"]


def test_filter_by_own_category_contains_product(catalog):
    for product in catalog.products:
        same_category = catalog.filter(lambda p, c=product.category: p.category == c)
        assert product in same_category


def test_find_by_id(catalog):
    assert catalog.find_by_id("4").name == "Dell XPS 13"
    assert catalog.find_by_id("missing") is None


def test_distinct_categories_insertion_order(catalog):
    assert catalog.distinct_categories() == ["Electronics", "Books"]


def test_by_category_with_subcategory(catalog):
    laptops = catalog.by_category("Electronics", "Laptops")
    assert [p.name for p in laptops] == ['MacBook Pro 16" M3', "Dell XPS 13"]


def test_by_category_without_subcategory(catalog):
    books = catalog.by_category("Books")
    assert {p.id for p in books} == {"3", "6"}


def test_search_is_case_insensitive(catalog):
    assert catalog.search(query="LAPTOP") == catalog.search(query="laptop")
    assert len(catalog.search(query="laptop")) == 2


def test_search_matches_name_description_and_tags(catalog):
    assert [p.id for p in catalog.search(query="galaxy")] == ["5"]
    assert [p.id for p in catalog.search(query="titanium")] == ["2"]
    assert [p.id for p in catalog.search(query="ultrabook")] == ["4"]


def test_search_does_not_match_category_text(catalog):
    assert catalog.search(query="electronics") == []


def test_search_filters_are_conjunctive(catalog):
    results = catalog.search(query="apple", category="electronics", max_price=2000)
    assert [p.id for p in results] == ["2"]


def test_search_price_bounds_inclusive(catalog):
    results = catalog.search(min_price=999, max_price=1199)
    assert [p.id for p in results] == ["2", "4"]


def test_search_without_filters_returns_everything(catalog):
    assert catalog.search() == list(catalog.products)


def test_build_search_predicate_empty_query_matches():
    product = Product(id="x", name="Thing", price=1, category="Misc")
    assert build_search_predicate(query="")(product)


def test_loader_skips_invalid_records(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(
        json.dumps(
            [
                {"id": "a", "name": "Valid", "price": 10, "category": "Misc"},
                {"id": "b", "name": "Negative", "price": -1, "category": "Misc"},
                "not a record",
            ]
        ),
        encoding="utf-8",
    )
    loaded, meta = CatalogLoader(path).load()
    assert [p.id for p in loaded.products] == ["a"]
    assert meta.file_name == "products.json"
    assert meta.product_count == 1
    assert len(meta.sha256) == 64


def test_product_rejects_original_price_below_price():
    with pytest.raises(ValidationError):
        Product(id="x", name="Thing", price=100, original_price=80, category="Misc")
    assert Product(id="y", name="Thing", price=100, original_price=100, category="Misc").original_price == 100


def test_loader_skips_record_marked_up_from_original_price(tmp_path):
    path = tmp_path / "products.json"
    path.write_text(
        json.dumps(
            {
                "items": [
                    {"id": "a", "name": "Sale", "price": 80, "original_price": 100, "category": "Misc"},
                    {"id": "b", "name": "Markup", "price": 120, "original_price": 100, "category": "Misc"},
                ]
            }
        ),
        encoding="utf-8",
    )
    loaded, meta = CatalogLoader(path).load()
    assert [p.id for p in loaded.products] == ["a"]
    assert meta.product_count == 1


def test_catalog_module_has_docstring():
    assert catalog_module.__doc__.startswith("Product catalog loading and filtering.")

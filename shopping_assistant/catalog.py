"""Product catalog loading and filtering.

This module loads the product resource file into Product models and provides the
deterministic filter/search helpers used by the intent router and the API.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from .models import Product

logger = logging.getLogger("shopassist.catalog")

ProductPredicate = Callable[[Product], bool]


@dataclass
class CatalogMeta:
    """Metadata describing the catalog file version for logging."""
    file_name: str
    updated_at: str
    sha256: str
    product_count: int


class Catalog:
    """Read-only product dataset queried by search and filter."""

    def __init__(self, products: Iterable[Product]) -> None:
        self._products: Tuple[Product, ...] = tuple(products)
        self._by_id: Dict[str, Product] = {}
        for product in self._products:
            self._by_id.setdefault(product.id, product)

    def __len__(self) -> int:
        return len(self._products)

    @property
    def products(self) -> Tuple[Product, ...]:
        return self._products

    def filter(self, predicate: ProductPredicate) -> List[Product]:
        """Return products matching predicate in catalog insertion order."""
        return [product for product in self._products if predicate(product)]

    def find_by_id(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)

    def distinct_categories(self) -> List[str]:
        """Purpose: List distinct categories in first-seen order.
        Inputs/Outputs: No inputs; returns a list of category names.
        Side Effects / State: None.
        Dependencies: Uses the loaded product tuple.
        Failure Modes: None; an empty catalog returns an empty list.
        Testing Notes: Ensure duplicates collapse and insertion order is kept.
        """
        # dict preserves insertion order, so keys give an ordered set.
        return list(dict.fromkeys(product.category for product in self._products))

    def by_category(self, category: str, subcategory: Optional[str] = None) -> List[Product]:
        """Purpose: Filter by exact category and optional exact subcategory.
        Inputs/Outputs: Inputs are category and optional subcategory; returns products.
        Side Effects / State: None.
        Dependencies: Uses filter().
        Failure Modes: Unknown categories return an empty list.
        If Removed: Category-based chat intents cannot pick recommendations.
        Testing Notes: Query Electronics/Laptops and verify only laptops return.
        """
        # Exact match mirrors how intents name their catalog slices.
        def predicate(product: Product) -> bool:
            if product.category != category:
                return False
            return subcategory is None or product.subcategory == subcategory

        return self.filter(predicate)

    def search(
        self,
        query: Optional[str] = None,
        category: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
    ) -> List[Product]:
        """Purpose: Free-text search combined with category and price filters.
        Inputs/Outputs: Inputs are optional query, category, and inclusive price bounds;
            output is the matching products in catalog order.
        Side Effects / State: None.
        Dependencies: Uses build_search_predicate and filter().
        Failure Modes: None; missing filters are ignored.
        If Removed: Search intent and the product search route have no backend.
        Testing Notes: Verify case-insensitivity and that filters combine with AND.
        """
        # Build a single conjunctive predicate and scan once.
        predicate = build_search_predicate(query, category, min_price, max_price)
        return self.filter(predicate)


def build_search_predicate(
    query: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> ProductPredicate:
    """Purpose: Compose search filters into one product predicate.
    Inputs/Outputs: Inputs are optional filters; output is a predicate callable.
    Side Effects / State: None; pure function.
    Dependencies: Uses matches_query for free-text matching.
    Failure Modes: None; empty query/category strings behave as absent.
    Testing Notes: Each filter should narrow results independently.
    """
    # Collect active filters; a product must satisfy all of them.
    checks: List[ProductPredicate] = []
    if query:
        needle = query.lower()
        checks.append(lambda product: matches_query(product, needle))
    if category:
        wanted = category.lower()
        checks.append(lambda product: product.category.lower() == wanted)
    if min_price is not None:
        checks.append(lambda product: product.price >= min_price)
    if max_price is not None:
        checks.append(lambda product: product.price <= max_price)

    def predicate(product: Product) -> bool:
        return all(check(product) for check in checks)

    return predicate


def matches_query(product: Product, needle: str) -> bool:
    """True when a lowercased needle occurs in the name, description, or any tag."""
    if needle in product.name.lower():
        return True
    if needle in product.description.lower():
        return True
    return any(needle in tag.lower() for tag in product.tags)


class CatalogLoader:
    def __init__(self, path: Path) -> None:
        """Purpose: Configure the loader with a catalog file path.
        Inputs/Outputs: Input is a Path to the products JSON file; no return value.
        Side Effects / State: Stores the path for later load calls.
        Failure Modes: None at init; load() handles read/parse errors.
        Testing Notes: Instantiate with a temp path and call load().
        """
        self._path = path

    def load(self) -> Tuple[Catalog, CatalogMeta]:
        """Purpose: Load and validate catalog data from the resource file.
        Inputs/Outputs: No inputs; returns a Catalog and CatalogMeta.
        Side Effects / State: Reads file contents and computes hash/mtime.
        Dependencies: Uses json, hashlib, and the Product model.
        Failure Modes: Missing files and JSON decode errors raise to the caller;
            individual invalid records are skipped with a warning.
        If Removed: The app has no products to search, recommend, or add to carts.
        Testing Notes: Use a temp file with one bad record and verify it is skipped.
        """
        # Read bytes for hashing and parse JSON into validated products.
        raw_bytes = self._path.read_bytes()
        sha256 = hashlib.sha256(raw_bytes).hexdigest()
        updated_at = datetime.fromtimestamp(self._path.stat().st_mtime).isoformat()

        data = json.loads(raw_bytes.decode("utf-8-sig"))
        records: List[Any]
        if isinstance(data, dict):
            records = data.get("items", [])
        elif isinstance(data, list):
            records = data
        else:
            records = []

        products: List[Product] = []
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                logger.warning("catalog record %d skipped: not an object", index)
                continue
            try:
                products.append(Product(**record))
            except ValidationError as exc:
                logger.warning("catalog record %d skipped: %s", index, exc.errors()[0].get("msg"))

        meta = CatalogMeta(
            file_name=self._path.name,
            updated_at=updated_at,
            sha256=sha256,
            product_count=len(products),
        )
        logger.info(
            "catalog loaded file=%s products=%d sha256=%s",
            meta.file_name,
            meta.product_count,
            meta.sha256[:12],
        )
        return Catalog(products), meta

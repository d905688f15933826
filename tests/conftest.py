import os

# The app module reads settings at import time; keep chat replies instant.
os.environ["RESPONSE_DELAY_MAX"] = "0"
os.environ.pop("SESSIONS_PATH", None)
os.environ.pop("MAX_SESSIONS", None)

import pytest

from shopping_assistant.catalog import Catalog, CatalogLoader
from shopping_assistant.config import BASE_DIR
from shopping_assistant.session_store import SessionStore


@pytest.fixture
def catalog() -> Catalog:
    loaded, _ = CatalogLoader(BASE_DIR / "data" / "products.json").load()
    return loaded


@pytest.fixture
def store() -> SessionStore:
    return SessionStore()

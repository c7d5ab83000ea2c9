from datetime import datetime

import pytest

from factories import NOW, make_item, make_view
from mindweave.store import InMemoryContentStore


@pytest.fixture(autouse=True)
def no_llm_credentials(monkeypatch):
    """
    Keep tests offline: without a key the clusterer falls back to the default
    cluster name instead of calling the API.
    """
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> InMemoryContentStore:
    """
    Two topics for user "u1":
      python notes near [1, 0, 0], cooking links near [0, 0, 1].
    """
    items = [
        make_item("py-1", [1.0, 0.0, 0.0], days_old=2, title="Python typing", tags=["python"]),
        make_item("py-2", [0.9, 0.1, 0.0], days_old=10, title="Asyncio tips", tags=["python"]),
        make_item("py-3", [0.95, 0.05, 0.0], days_old=60, title="Packaging guide", tags=["python"]),
        make_item("ck-1", [0.0, 0.0, 1.0], days_old=3, title="Sourdough", type="link", tags=["baking"]),
        make_item("ck-2", [0.0, 0.1, 0.9], days_old=45, title="Ramen broth", type="link", tags=["cooking"]),
        make_item("no-emb", None, days_old=0.5, title="Unprocessed upload", type="file"),
    ]
    views = [
        make_view("py-1", 0.1),
        make_view("py-1", 3),
        make_view("ck-1", 2),
    ]
    return InMemoryContentStore({"u1": items}, {"u1": views})

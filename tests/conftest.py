"""
Shared fixtures: fake upstream, scripted randomness, fake clock and a
temporary two-tier cache.
"""
import asyncio
import itertools
from typing import Dict, List, Optional

import pytest

from app.cache import MemoryStore, RecordCache, SQLiteKeyValueStore
from app.catalog_client import CatalogFetchError


def make_raw_item(item_id: int, name: Optional[str] = None) -> dict:
    """Upstream-shaped catalog item."""
    return {
        "id": item_id,
        "name": name or f"item-{item_id}",
        "height": 7,
        "weight": 69,
        "types": [
            {"slot": 1, "type": {"name": "grass", "url": "https://example.test/type/12/"}},
            {"slot": 2, "type": {"name": "poison", "url": "https://example.test/type/4/"}},
        ],
        "stats": [
            {"base_stat": 45, "effort": 0, "stat": {"name": "hp"}},
            {"base_stat": 49, "effort": 0, "stat": {"name": "attack"}},
        ],
        "abilities": [
            {"ability": {"name": "overgrow"}, "is_hidden": False},
            {"ability": {"name": "chlorophyll"}, "is_hidden": True},
        ],
        "sprites": {
            "front_default": f"https://img.example.test/{item_id}.png",
            "front_shiny": f"https://img.example.test/shiny/{item_id}.png",
            "other": {
                "official-artwork": {"front_default": f"https://img.example.test/art/{item_id}.png"},
                "showdown": {"front_default": None},
            },
        },
    }


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedRandom:
    """Stand-in for random.Random whose randint cycles through fixed values."""

    def __init__(self, values):
        self._values = itertools.cycle(values)

    def randint(self, a: int, b: int) -> int:
        return next(self._values)


class FakeCatalogClient:
    """
    Scripted async catalog client.

    Every ID succeeds unless listed in ``failing_ids`` or ``fail_all`` is set.
    """

    def __init__(self, failing_ids=(), fail_all: bool = False, payloads: Optional[Dict[int, object]] = None):
        self.failing_ids = set(failing_ids)
        self.fail_all = fail_all
        self.payloads = payloads or {}
        self.calls: List[int] = []

    async def fetch_item(self, item_id: int):
        self.calls.append(item_id)
        await asyncio.sleep(0)
        if self.fail_all or item_id in self.failing_ids:
            raise CatalogFetchError(f"Catalog returned 503 for item {item_id}", item_id, 503)
        return self.payloads.get(item_id, make_raw_item(item_id))


class StallingCatalogClient:
    """Catalog client whose requests never complete until cancelled."""

    def __init__(self):
        self.calls: List[int] = []
        self.aborted = 0

    async def fetch_item(self, item_id: int):
        self.calls.append(item_id)
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.aborted += 1
            raise


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def durable_store(tmp_path):
    return SQLiteKeyValueStore(tmp_path / "cache.db")


@pytest.fixture
def cache(durable_store, clock):
    return RecordCache(MemoryStore(), durable_store, ttl_seconds=3600, clock=clock)

"""
Pytest configuration and shared test helpers for backend tests.
"""
import copy
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from pymongo.errors import DuplicateKeyError

BACKEND_DIR = Path(__file__).resolve().parent.parent
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))


def _matches(doc, query):
    for key, expected in query.items():
        if isinstance(expected, dict) and "$gte" in expected:
            if key not in doc or doc[key] < expected["$gte"]:
                return False
        elif doc.get(key) != expected:
            return False
    return True


class InMemoryCollection:
    """The handful of motor collection calls the services make, backed by a list."""

    def __init__(self, unique_key=None):
        self.docs = []
        self.unique_key = unique_key

    def _find(self, query):
        return next((d for d in self.docs if _matches(d, query)), None)

    async def find_one(self, query, projection=None):
        doc = self._find(query)
        return copy.deepcopy(doc) if doc else None

    async def insert_one(self, doc):
        if self.unique_key and self._find({self.unique_key: doc.get(self.unique_key)}):
            raise DuplicateKeyError(f"E11000 duplicate key error: {self.unique_key}")
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=len(self.docs))

    async def update_one(self, query, update, upsert=False):
        doc = self._find(query)
        inserted = False
        if doc is None:
            if not upsert:
                return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)
            doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            self.docs.append(doc)
            inserted = True
            doc.update(update.get("$setOnInsert", {}))

        for key, value in update.get("$set", {}).items():
            doc[key] = value
        for key, value in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + value

        return SimpleNamespace(
            matched_count=0 if inserted else 1,
            modified_count=0 if inserted else 1,
            upserted_id=len(self.docs) if inserted else None,
        )


class InMemoryDb:
    UNIQUE_KEYS = {"payment_ledger": "telegram_payment_charge_id"}

    def __init__(self):
        self.collections = {}

    def __getitem__(self, name):
        if name not in self.collections:
            self.collections[name] = InMemoryCollection(self.UNIQUE_KEYS.get(name))
        return self.collections[name]

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]


@pytest.fixture
def db():
    """In-memory stand-in for the motor database with demo catalog rows."""
    database = InMemoryDb()
    database["inAppPurchases"].docs.extend([
        {"product_id": "coins_500", "name": "500 Coins", "description": "Coins", "image_url": "https://img/coins.png",
         "price": 4.99, "type": "coins", "amount": 500},
        {"product_id": "coins_5000", "name": "5000 Coins", "description": "Coins", "image_url": None,
         "price": 39.99, "type": "coins", "amount": 5000},
        {"product_id": "spins_10", "name": "10 Spins", "description": "Spins", "image_url": None,
         "price": 1.99, "type": "spins", "amount": 10},
        {"product_id": "tshirt", "name": "T-Shirt", "description": "Shipped", "image_url": "https://img/tshirt.png",
         "price": 19.99, "type": "physical"},
        {"product_id": "mystery", "name": "Mystery", "description": "?", "price": 1.0, "type": "stickerPack"},
    ])
    database["stickerPacks"].docs.extend([
        {"product_id": "cats", "name": "Cats", "description": "Cat stickers", "image_url": None, "price": 200},
    ])
    return database


@pytest.fixture
def messenger():
    mock = AsyncMock()
    mock.send_message = AsyncMock()
    mock.send_invoice = AsyncMock()
    mock.answer_pre_checkout = AsyncMock()
    return mock

import asyncio
import copy
import os
import re
from datetime import datetime
from types import SimpleNamespace
from zoneinfo import ZoneInfo

os.environ.setdefault("MONGODB_URL", "mongodb://localhost:27017")
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

from app.main import app
from app.database import get_database
from app.core.config_loader import ConfigLoader, get_config_loader
from app.core.geo import MapboxClient, get_mapbox_client
from app.core.security import create_access_token
from app.models.delivery import DeliveryConfig

STORE_TZ = ZoneInfo("America/Sao_Paulo")


def store_time(*args) -> datetime:
    return datetime(*args, tzinfo=STORE_TZ)


def route_client(distance=5000):
    """Mapbox client whose every route is `distance` meters long, or never found when None"""
    def handler(request):
        if distance is None:
            return httpx.Response(200, json={"code": "NoRoute", "routes": []})
        return httpx.Response(200, json={"code": "Ok", "routes": [{"distance": distance}]})

    return MapboxClient(access_token="token", transport=httpx.MockTransport(handler))


def store_delivery(db, **overrides):
    """Store a delivery configuration with a store location, 2.50/km beyond 3 km, 10 km radius"""
    config = {
        "storeLat": -23.55052,
        "storeLng": -46.633308,
        "deliveryFeePerKm": 2.5,
        "minDeliveryDistanceForFee": 3000,
        "radius": 10,
    }
    config.update(overrides)
    db.config.docs[:] = [doc for doc in db.config.docs if doc.get("key") != "delivery"]
    db.config.add({"key": "delivery", **DeliveryConfig(**config).model_dump(mode="json")})


# In-memory stand-in for the Motor collections used by the app

def _get(doc, path):
    value = doc
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _set(doc, path, value):
    parts = path.split(".")
    for part in parts[:-1]:
        doc = doc.setdefault(part, {})
    doc[parts[-1]] = value


def _matches_condition(value, cond):
    if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
        for op, arg in cond.items():
            if op == "$ne" and value == arg:
                return False
            if op == "$in" and value not in arg:
                return False
            if op == "$exists" and (value is not None) != arg:
                return False
            if op == "$gte" and (value is None or value < arg):
                return False
            if op == "$gt" and (value is None or value <= arg):
                return False
            if op == "$lte" and (value is None or value > arg):
                return False
            if op == "$lt" and (value is None or value >= arg):
                return False
            if op == "$regex":
                flags = re.IGNORECASE if "i" in cond.get("$options", "") else 0
                if value is None or not re.search(arg, str(value), flags):
                    return False
        return True
    if isinstance(value, list) and not isinstance(cond, list):
        return cond in value
    return value == cond


def matches(doc, query):
    for key, cond in (query or {}).items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in cond):
                return False
        elif not _matches_condition(_get(doc, key), cond):
            return False
    return True


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs
        self._skip = 0
        self._limit = None

    def sort(self, key, direction=1):
        keys = key if isinstance(key, list) else [(key, direction)]
        for field, order in reversed(keys):
            self._docs.sort(
                key=lambda d: (_get(d, field) is None, _get(d, field)),
                reverse=order < 0,
            )
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        docs = self._docs[self._skip:]
        limit = self._limit or length
        return docs[:limit] if limit else docs


class FakeCollection:
    def __init__(self):
        self.docs = []
        self.unique = []

    def add(self, doc):
        """Insert synchronously, for test setup"""
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        return doc["_id"]

    async def create_index(self, keys, unique=False, sparse=False, **kwargs):
        if unique and isinstance(keys, str):
            self.unique.append((keys, sparse))
        return keys

    def _check_unique(self, doc):
        for field, sparse in self.unique:
            value = _get(doc, field)
            if value is None and sparse:
                continue
            if any(_get(other, field) == value for other in self.docs if other is not doc):
                raise DuplicateKeyError(f"duplicate key on {field}")

    async def insert_one(self, doc):
        doc["_id"] = doc.get("_id") or ObjectId()
        stored = copy.deepcopy(doc)
        self._check_unique(stored)
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    async def find_one(self, query=None):
        for doc in self.docs:
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query=None):
        return FakeCursor([copy.deepcopy(d) for d in self.docs if matches(d, query)])

    async def count_documents(self, query):
        return sum(1 for d in self.docs if matches(d, query))

    def _apply(self, doc, update, inserting=False):
        for path, value in update.get("$set", {}).items():
            _set(doc, path, copy.deepcopy(value))
        for path, value in update.get("$inc", {}).items():
            _set(doc, path, (_get(doc, path) or 0) + value)
        for path, value in update.get("$push", {}).items():
            current = _get(doc, path) or []
            _set(doc, path, current + [copy.deepcopy(value)])
        for path in update.get("$unset", {}):
            doc.pop(path, None)
        if inserting:
            for path, value in update.get("$setOnInsert", {}).items():
                _set(doc, path, copy.deepcopy(value))

    async def update_one(self, query, update, upsert=False):
        for doc in self.docs:
            if matches(doc, query):
                before = copy.deepcopy(doc)
                self._apply(doc, update)
                return SimpleNamespace(matched_count=1, modified_count=int(before != doc), upserted_id=None)

        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

        doc = {k: v for k, v in query.items() if not k.startswith("$") and not isinstance(v, dict)}
        self._apply(doc, update, inserting=True)
        doc["_id"] = ObjectId()
        self.docs.append(doc)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=doc["_id"])

    async def delete_one(self, query):
        for i, doc in enumerate(self.docs):
            if matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return self._collections.setdefault(name, FakeCollection())

    async def command(self, name):
        return {"ok": 1}


# Fixtures

@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def loader():
    return ConfigLoader(ttl_seconds=60)


@pytest.fixture
def fixed_now(monkeypatch):
    """Freeze the store clock used by the ordering and schedule endpoints"""
    def freeze(moment: datetime):
        for module in ("app.core.orders", "app.api.v1.settings", "app.api.v1.checkout"):
            monkeypatch.setattr(f"{module}.store_now", lambda: moment)
        return moment

    # Monday, inside the default weekday hours
    freeze(store_time(2025, 1, 6, 9, 30))
    return freeze


@pytest.fixture
def client(db, loader, fixed_now):
    app.dependency_overrides[get_database] = lambda: db
    app.dependency_overrides[get_config_loader] = lambda: loader
    app.dependency_overrides[get_mapbox_client] = lambda: route_client(5000)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def delivery_area(db):
    store_delivery(db)

def _user(db, role):
    user_id = db.users.add({
        "email": f"{role}@example.com",
        "name": role.title(),
        "role": role,
        "active": True,
        "order_count": 0,
        "created_at": datetime.utcnow(),
        "updated_at": datetime.utcnow(),
    })
    return {"Authorization": f"Bearer {create_access_token(str(user_id), role)}"}


@pytest.fixture
def admin_headers(db):
    return _user(db, "admin")


@pytest.fixture
def customer_headers(db):
    return _user(db, "customer")


def add_product(db, name="Bolo de Cenoura", sizes=None, addons=None, active=True, **extra):
    product = {
        "name": name,
        "sizes": sizes if sizes is not None else [{"size": "Fatia", "price": 9.5}, {"size": "Inteiro", "price": 58.0}],
        "addons": addons if addons is not None else [{"name": "Calda extra", "price": 3.0, "maxQuantity": 2}],
        "active": active,
        "highlight": False,
        "orderCount": 0,
        "created_at": datetime.utcnow(),
        "updated_at": datetime.utcnow(),
        **extra,
    }
    return str(db.products.add(product))


def run(coro):
    return asyncio.run(coro)

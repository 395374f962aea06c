from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any

import pytest
from pymongo.errors import DuplicateKeyError, PyMongoError

from martelinho.services.repository import ServiceRepository


def _matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, cond in query.items():
        value = doc.get(key)
        if isinstance(cond, dict):
            for op, arg in cond.items():
                if value is None:
                    return False
                if op == "$gte" and not value >= arg:
                    return False
                if op == "$lte" and not value <= arg:
                    return False
                if op == "$lt" and not value < arg:
                    return False
        elif value != cond:
            return False
    return True


class FakeCursor(list):
    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        return FakeCursor(sorted(self, key=lambda d: d.get(key), reverse=direction < 0))


class FakeCollection:
    """Minimal in-memory stand-in for a PyMongo collection."""

    def __init__(self, unique: tuple[str, ...] = ()) -> None:
        self.docs: dict[Any, dict[str, Any]] = {}
        self.unique = unique
        self.queries: list[dict[str, Any]] = []
        self.fail = False
        self._lock = threading.Lock()

    def _check(self) -> None:
        if self.fail:
            raise PyMongoError("connection refused")

    def find(self, query: dict[str, Any], projection: dict[str, Any] | None = None) -> FakeCursor:
        self._check()
        with self._lock:
            self.queries.append(query)
            out = []
            for doc in self.docs.values():
                if _matches(doc, query):
                    if projection:
                        doc = {k: v for k, v in doc.items() if k == "_id" or k in projection}
                    out.append(copy.deepcopy(doc))
            return FakeCursor(out)

    def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        found = self.find(query)
        return found[0] if found else None

    def insert_one(self, doc: dict[str, Any]) -> SimpleNamespace:
        self._check()
        with self._lock:
            if doc["_id"] in self.docs:
                raise DuplicateKeyError("duplicate _id")
            for field in self.unique:
                if any(d.get(field) == doc.get(field) for d in self.docs.values()):
                    raise DuplicateKeyError(f"duplicate {field}")
            self.docs[doc["_id"]] = copy.deepcopy(doc)
        return SimpleNamespace(inserted_id=doc["_id"])

    def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> SimpleNamespace:
        self._check()
        with self._lock:
            for doc in self.docs.values():
                if _matches(doc, query):
                    doc.update(copy.deepcopy(update["$set"]))
                    return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    def delete_one(self, query: dict[str, Any]) -> SimpleNamespace:
        self._check()
        with self._lock:
            for key, doc in list(self.docs.items()):
                if _matches(doc, query):
                    del self.docs[key]
                    return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


def service_doc(
    _id: str,
    service_date: str,
    service_value: Any,
    tenant_id: str = "tenant-a",
    **extra: Any,
) -> dict[str, Any]:
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    doc = {
        "_id": _id,
        "tenant_id": tenant_id,
        "client_name": "Maria Souza",
        "service_date": service_date,
        "car_plate": "ABC1D23",
        "car_model": "Onix",
        "service_value": service_value,
        "repaired_parts": ["capo"],
        "created_at": now,
        "updated_at": now,
    }
    doc.update(extra)
    return doc


@pytest.fixture
def services_collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def repo(services_collection: FakeCollection) -> ServiceRepository:
    return ServiceRepository(services_collection)  # type: ignore[arg-type]


@pytest.fixture
def users_collection() -> FakeCollection:
    return FakeCollection(unique=("email",))


@pytest.fixture
def make_doc():
    return service_doc

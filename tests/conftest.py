"""Shared fixtures: an in-memory Firestore and fake callers so tests run without credentials."""
from __future__ import annotations

import itertools
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import pytest
from firebase_admin import firestore

from dealer_portal.services.identity import Identity


# ---------- Fake Firestore ----------

_clock = itertools.count()
_EPOCH = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _resolve_sentinels(data: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for k, v in data.items():
        if v is firestore.SERVER_TIMESTAMP:
            v = _EPOCH + timedelta(seconds=next(_clock))
        out[k] = v
    return out


class FakeSnapshot:
    def __init__(self, ref: "FakeDocRef", data: Optional[Dict[str, Any]]):
        self.reference = ref
        self.id = ref.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocRef:
    def __init__(self, db: "FakeFirestore", path: Tuple[str, ...]):
        self._db = db
        self.path = path
        self.id = path[-1]

    def get(self) -> FakeSnapshot:
        return FakeSnapshot(self, self._db.docs.get(self.path))

    def set(self, data, merge=False):
        self._db.apply_set(self.path, data, merge)

    def update(self, data):
        if self.path not in self._db.docs:
            raise KeyError(f"no document to update: {'/'.join(self.path)}")
        self._db.apply_set(self.path, data, merge=True)

    def delete(self):
        self._db.docs.pop(self.path, None)

    def collection(self, name: str) -> "FakeCollection":
        return FakeCollection(self._db, self.path + (name,))


class FakeQuery:
    def __init__(self, db, col_path, filters=(), order=None, limit=None):
        self._db = db
        self._col_path = col_path
        self._filters = tuple(filters)
        self._order = order
        self._limit = limit

    def where(self, field, op, value):
        assert op == "==", "fake only supports equality filters"
        return FakeQuery(self._db, self._col_path, self._filters + ((field, value),),
                         self._order, self._limit)

    def order_by(self, field, direction="ASCENDING"):
        return FakeQuery(self._db, self._col_path, self._filters, (field, direction), self._limit)

    def limit(self, n):
        return FakeQuery(self._db, self._col_path, self._filters, self._order, n)

    def stream(self):
        n = len(self._col_path)
        rows = []
        for path, data in self._db.docs.items():
            if len(path) != n + 1 or path[:n] != self._col_path:
                continue
            if all(data.get(f) == v for f, v in self._filters):
                rows.append(FakeSnapshot(FakeDocRef(self._db, path), data))
        if self._order:
            field, direction = self._order
            rows.sort(key=lambda s: s.to_dict().get(field),
                      reverse=direction == firestore.Query.DESCENDING)
        if self._limit is not None:
            rows = rows[: self._limit]
        return iter(rows)


class FakeCollection(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, path)

    def document(self, doc_id: Optional[str] = None) -> FakeDocRef:
        return FakeDocRef(self._db, self._col_path + (doc_id or uuid.uuid4().hex[:20],))


class FakeBatch:
    """Writes are staged and only become visible on commit()."""

    def __init__(self, db: "FakeFirestore"):
        self._db = db
        self._writes = []

    def set(self, ref: FakeDocRef, data, merge=False):
        if self._db.fail_batch_set_after is not None and len(self._writes) >= self._db.fail_batch_set_after:
            raise RuntimeError("simulated write failure")
        self._writes.append((ref.path, data, merge))

    def commit(self):
        if self._db.fail_commit:
            raise RuntimeError("simulated commit failure")
        for path, data, merge in self._writes:
            self._db.apply_set(path, data, merge)
        self._writes = []


class FakeFirestore:
    def __init__(self):
        self.docs: Dict[Tuple[str, ...], Dict[str, Any]] = {}
        self.fail_batch_set_after: Optional[int] = None
        self.fail_commit = False

    def collection(self, name: str) -> FakeCollection:
        return FakeCollection(self, (name,))

    def batch(self) -> FakeBatch:
        return FakeBatch(self)

    def apply_set(self, path, data, merge):
        data = _resolve_sentinels(data)
        if merge and path in self.docs:
            self.docs[path] = {**self.docs[path], **data}
        else:
            self.docs[path] = dict(data)

    def collection_docs(self, *path: str) -> Dict[str, Dict[str, Any]]:
        n = len(path)
        return {p[-1]: d for p, d in self.docs.items() if len(p) == n + 1 and p[:n] == path}


# ---------- Callers ----------

DEALER = Identity(uid="uid-dealer", accountId="acct1", tierId="TIER_A", currency="EUR", role="DEALER")
OTHER_DEALER = Identity(uid="uid-other", accountId="acct2", tierId="TIER_B", currency="USD", role="DEALER")
STAFF = Identity(uid="uid-admin", role="ADMIN")
UNCONFIGURED = Identity(uid="uid-new")

TOKENS = {
    "dealer-token": DEALER,
    "other-token": OTHER_DEALER,
    "admin-token": STAFF,
    "unconfigured-token": UNCONFIGURED,
}


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ---------- Fixtures ----------

@pytest.fixture(autouse=True)
def fake_db(monkeypatch) -> FakeFirestore:
    """Route every ensure_firestore() call to a fresh in-memory store."""
    db = FakeFirestore()
    monkeypatch.setattr("dealer_portal.services.orders.ensure_firestore", lambda: db)
    monkeypatch.setattr("dealer_portal.services.catalog.ensure_firestore", lambda: db)
    return db


@pytest.fixture(autouse=True)
def _patch_identity(monkeypatch):
    """Accept the canned tokens above instead of verifying real Firebase ID tokens."""
    monkeypatch.setattr("dealer_portal.services.identity.verify_caller", TOKENS.get)


@pytest.fixture()
def client():
    """FastAPI TestClient (sync)."""
    from fastapi.testclient import TestClient
    from dealer_portal.main import app
    return TestClient(app)

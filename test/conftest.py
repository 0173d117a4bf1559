from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from firebase_admin import firestore

from membership_functions import firebase_client as firebase_client_module
from membership_functions.firebase_client import FirebaseClient


class FakeDocumentSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, db, collection, doc_id):
        self.db = db
        self.collection = collection
        self.id = doc_id

    def get(self, transaction=None):
        self.db.reads.append((self.collection, self.id))
        return FakeDocumentSnapshot(self, self.db.data.get(self.collection, {}).get(self.id))

    def set(self, data):
        self.db.data.setdefault(self.collection, {})[self.id] = dict(data)

    def update(self, fields):
        self.db.data[self.collection][self.id].update(fields)

    def delete(self):
        self.db.data.get(self.collection, {}).pop(self.id, None)


class FakeCollection:
    def __init__(self, db, name):
        self.db = db
        self.name = name

    def document(self, doc_id):
        return FakeDocumentReference(self.db, self.name, doc_id)

    def get(self):
        if self.db.fail_on_get:
            raise self.db.fail_on_get
        return [
            FakeDocumentSnapshot(self.document(doc_id), data)
            for doc_id, data in self.db.data.get(self.name, {}).items()
        ]

    stream = get


class FakeWriteBatch:
    def __init__(self, db):
        self.db = db
        self.updates = []

    def update(self, reference, fields):
        self.updates.append((reference, dict(fields)))

    def commit(self):
        if self.db.fail_on_commit:
            raise self.db.fail_on_commit
        for reference, fields in self.updates:
            reference.update(fields)
        self.db.commits.append(list(self.updates))


class FakeTransaction:
    def set(self, reference, data):
        reference.set(data)

    def delete(self, reference):
        reference.delete()


class FakeFirestore:
    """In-memory stand-in for the handful of Firestore calls the handlers make."""

    def __init__(self):
        self.data = {}
        self.reads = []
        self.commits = []
        self.fail_on_get = None
        self.fail_on_commit = None

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeWriteBatch(self)

    def transaction(self):
        return FakeTransaction()

    def add(self, collection, doc_id, data):
        self.data.setdefault(collection, {})[doc_id] = dict(data)


@pytest.fixture(autouse=True)
def plain_transactions(monkeypatch):
    """Run transactional functions directly against the fake transaction."""
    monkeypatch.setattr(firestore, "transactional", lambda fn: fn)


@pytest.fixture(autouse=True)
def reset_firebase_state(monkeypatch):
    monkeypatch.setattr(firebase_client_module, "_app", None)
    monkeypatch.setattr(firebase_client_module, "_client", None)


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def sent_messages(monkeypatch):
    sent = []

    def fake_send(message, dry_run=False, app=None):
        sent.append(message)
        return f"projects/test/messages/{len(sent)}"

    monkeypatch.setattr(firebase_client_module.messaging, "send", fake_send)
    return sent


@pytest.fixture
def client(fake_db):
    return FirebaseClient(app=MagicMock(name="app"), firestore_db=fake_db)


@pytest.fixture
def now():
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def yesterday(now):
    return now - timedelta(days=1)


@pytest.fixture
def tomorrow(now):
    return now + timedelta(days=1)

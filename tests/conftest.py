"""
Shared fixtures: in-memory stand-ins for the Firestore and Firebase Auth
clients, and a MigrationContext wired to them.

Only the client surface used by the migration is modelled: collections,
where(filter=FieldFilter) / limit / stream / get, add, document refs with
get/set/update (dotted field paths), and write batches.
"""

import copy
import itertools
from types import SimpleNamespace

import pytest

from config import MigrationSettings
from config.settings import DEFAULT_CONFIG_FILE
from datastore.firebase_connection import MigrationContext

_MISSING = object()


def _set_path(data, dotted, value):
    parts = dotted.split(".")
    target = data
    for part in parts[:-1]:
        nxt = target.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            target[part] = nxt
        target = nxt
    target[parts[-1]] = value


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not _MISSING

    def to_dict(self):
        if self._data is _MISSING:
            return None
        return copy.deepcopy(self._data)


class FakeDocumentReference:
    def __init__(self, db, collection_name, doc_id):
        self._db = db
        self.collection_name = collection_name
        self.id = doc_id

    @property
    def path(self):
        return f"{self.collection_name}/{self.id}"

    def _docs(self):
        return self._db.data.setdefault(self.collection_name, {})

    def get(self):
        data = self._docs().get(self.id, _MISSING)
        if data is _MISSING:
            return FakeSnapshot(self, _MISSING)
        return FakeSnapshot(self, copy.deepcopy(data))

    def set(self, data, merge=False):
        docs = self._docs()
        if merge and isinstance(docs.get(self.id), dict):
            for key, value in data.items():
                docs[self.id][key] = copy.deepcopy(value)
        else:
            docs[self.id] = copy.deepcopy(data)

    def update(self, data):
        if self.id in self._db.fail_updates_for:
            raise ValueError(f"Cannot update document {self.id}")
        docs = self._docs()
        if self.id not in docs:
            raise KeyError(f"No document to update: {self.path}")
        for key, value in data.items():
            _set_path(docs[self.id], key, copy.deepcopy(value))


class FakeQuery:
    _OPS = {
        "==": lambda a, b: a == b,
        "!=": lambda a, b: a != b,
    }

    def __init__(self, db, collection_name, filters=None, limit=None):
        self._db = db
        self.collection_name = collection_name
        self._filters = list(filters or [])
        self._limit = limit

    def where(self, filter=None):
        return FakeQuery(self._db, self.collection_name, self._filters + [filter], self._limit)

    def limit(self, count):
        return FakeQuery(self._db, self.collection_name, self._filters, count)

    def stream(self):
        self._db.reads.append(self.collection_name)
        docs = self._db.data.get(self.collection_name, {})
        matched = []
        for doc_id, data in list(docs.items()):
            if self._filters and not isinstance(data, dict):
                continue
            if all(
                self._OPS[f.op_string](data.get(f.field_path), f.value)
                for f in self._filters
            ):
                ref = FakeDocumentReference(self._db, self.collection_name, doc_id)
                matched.append(FakeSnapshot(ref, copy.deepcopy(data)))
        if self._limit is not None:
            matched = matched[:self._limit]
        return iter(matched)

    def get(self):
        return list(self.stream())


class FakeCollection(FakeQuery):
    def document(self, doc_id=None):
        if doc_id is None:
            doc_id = self._db.next_id()
        return FakeDocumentReference(self._db, self.collection_name, doc_id)

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return None, ref


class FakeWriteBatch:
    def __init__(self, db):
        self._db = db
        self._ops = []
        self.committed = False

    def update(self, ref, data):
        if ref.id in self._db.fail_updates_for:
            raise ValueError(f"Cannot update document {ref.id}")
        self._ops.append(("update", ref, copy.deepcopy(data), False))

    def set(self, ref, data, merge=False):
        if ref.id in self._db.fail_sets_for:
            raise ValueError(f"Cannot set document {ref.id}")
        self._ops.append(("set", ref, copy.deepcopy(data), merge))

    def commit(self):
        if self.committed:
            raise ValueError("Batch already committed")
        if self._db.fail_commits:
            raise RuntimeError("Firestore unavailable")
        for kind, ref, data, merge in self._ops:
            if kind == "update":
                ref.update(data)
            else:
                ref.set(data, merge=merge)
        self.committed = True
        self._db.commit_sizes.append(len(self._ops))
        return []


class FakeFirestore:
    def __init__(self):
        self.data = {}
        self.commit_sizes = []
        self.reads = []
        self.fail_updates_for = set()
        self.fail_sets_for = set()
        self.fail_commits = False
        self._ids = itertools.count(1)

    def next_id(self):
        return f"auto{next(self._ids):04d}"

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeWriteBatch(self)

    def seed(self, collection_name, docs):
        self.data.setdefault(collection_name, {}).update(copy.deepcopy(docs))

    def docs(self, collection_name):
        return self.data.get(collection_name, {})


class FakeListUsersPage:
    def __init__(self, accounts):
        self._accounts = accounts

    def iterate_all(self):
        return iter(list(self._accounts))


class FakeAuth:
    def __init__(self):
        self.accounts = {}
        self.fail_claims_for = set()
        self.list_error = None

    def add_account(self, uid, email=None, custom_claims=None, **fields):
        account = SimpleNamespace(
            uid=uid,
            email=email,
            display_name=fields.get("display_name"),
            phone_number=fields.get("phone_number"),
            photo_url=fields.get("photo_url"),
            disabled=fields.get("disabled", False),
            email_verified=fields.get("email_verified", False),
            custom_claims=custom_claims,
            user_metadata=SimpleNamespace(
                creation_timestamp=fields.get("creation_timestamp"),
                last_sign_in_timestamp=fields.get("last_sign_in_timestamp"),
            ),
        )
        self.accounts[uid] = account
        return account

    def list_users(self):
        if self.list_error is not None:
            raise self.list_error
        return FakeListUsersPage(self.accounts.values())

    def set_custom_user_claims(self, uid, custom_claims):
        if uid in self.fail_claims_for:
            raise RuntimeError(f"Claims rejected for {uid}")
        self.accounts[uid].custom_claims = dict(custom_claims)


@pytest.fixture
def settings(tmp_path):
    config = MigrationSettings._load_config(DEFAULT_CONFIG_FILE)
    config["firebase"]["service_account_path"] = str(tmp_path / "firebase-service-account.json")
    return MigrationSettings(config)


@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def fake_auth():
    return FakeAuth()


@pytest.fixture
def ctx(settings, fake_db, fake_auth):
    return MigrationContext(settings=settings, db=fake_db, auth=fake_auth)

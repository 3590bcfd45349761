import itertools
from datetime import datetime

import pytest

from use_cases.session_models import Identity, Profile


class FakeIdentityProvider:
    """In-memory identity provider with the same notification contract as the Firebase one."""

    def __init__(self, dispatcher=None):
        self.current = None
        self.listeners = []
        self.accounts = {}  # email -> (password, Identity)
        self.federated = {}  # provider token -> Identity
        self.fail_with = None
        self.sign_out_error = None
        self._dispatch = dispatcher or (lambda fn, *args: fn(*args))
        self._ids = itertools.count(1)

    def subscribe(self, callback):
        self.listeners.append(callback)
        self._dispatch(callback, self.current)
        return lambda: self.listeners.remove(callback)

    def emit(self, identity):
        self.current = identity
        for callback in list(self.listeners):
            self._dispatch(callback, identity)

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    def create_account(self, email, password):
        from use_cases.auth_errors import DuplicateIdentity
        self._check()
        if email in self.accounts:
            raise DuplicateIdentity("exists", code="EMAIL_EXISTS")
        identity = Identity(uid=f"uid-{next(self._ids)}", email=email, id_token="id", refresh_token="refresh")
        self.accounts[email] = (password, identity)
        self.emit(identity)
        return identity

    def set_display_name(self, identity, display_name):
        return Identity(
            uid=identity.uid, email=identity.email, display_name=display_name,
            id_token=identity.id_token, refresh_token=identity.refresh_token,
        )

    def sign_in_with_password(self, email, password):
        from use_cases.auth_errors import InvalidCredential
        self._check()
        stored = self.accounts.get(email)
        if stored is None or stored[0] != password:
            raise InvalidCredential("bad", code="INVALID_LOGIN_CREDENTIALS")
        self.emit(stored[1])
        return stored[1]

    def sign_in_with_idp(self, provider_token, provider_id="google.com"):
        self._check()
        identity = self.federated[provider_token]
        self.emit(identity)
        return identity

    def sign_out(self):
        self.emit(None)
        if self.sign_out_error is not None:
            raise self.sign_out_error


class DeferredDispatcher:
    """Queues notifications until run() is called, like an event loop would."""

    def __init__(self):
        self.queue = []

    def __call__(self, fn, *args):
        self.queue.append((fn, args))

    def run(self):
        while self.queue:
            fn, args = self.queue.pop(0)
            fn(*args)


class FakeDocumentStore:
    """Dict-backed document store with the FirestoreDocumentRepository interface."""

    def __init__(self):
        self.collections = {}
        self.before_get = None
        self.fail_get = None
        self._ids = itertools.count(1)

    def _coll(self, collection):
        return self.collections.setdefault(collection, {})

    def get_record(self, collection, record_id):
        if self.before_get is not None:
            self.before_get(collection, record_id)
        if self.fail_get is not None:
            raise self.fail_get
        record = self._coll(collection).get(record_id)
        if record is None:
            return None
        return dict(record, id=record_id)

    def set_record(self, collection, record_id, fields, mode="overwrite"):
        if mode not in ("overwrite", "merge"):
            raise ValueError(mode)
        coll = self._coll(collection)
        if mode == "merge" and record_id in coll:
            coll[record_id].update(fields)
        else:
            coll[record_id] = dict(fields)

    def create_record(self, collection, fields):
        record_id = f"doc-{next(self._ids)}"
        self._coll(collection)[record_id] = dict(fields)
        return record_id

    def list_records(self, collection, filters=()):
        result = []
        for record_id, record in self._coll(collection).items():
            if all(op == "==" and record.get(field) == value for field, op, value in filters):
                result.append(dict(record, id=record_id))
        return result

    def update_fields(self, collection, record_id, fields):
        if record_id not in self._coll(collection):
            raise KeyError(record_id)
        self._coll(collection)[record_id].update(fields)

    def delete_record(self, collection, record_id):
        self._coll(collection).pop(record_id, None)


@pytest.fixture
def provider():
    return FakeIdentityProvider()


@pytest.fixture
def store():
    return FakeDocumentStore()


@pytest.fixture
def admin_profile():
    now = datetime(2024, 1, 1)
    return Profile(uid="admin-1", email="admin@example.com", display_name="Admin", role="admin",
                   created_at=now, last_login=now)


@pytest.fixture
def student_profile():
    now = datetime(2024, 1, 1)
    return Profile(uid="student-1", email="s@example.com", display_name="Sam", role="student",
                   created_at=now, last_login=now)


@pytest.fixture
def deferred():
    """A provider whose notifications wait for dispatcher.run()."""
    dispatcher = DeferredDispatcher()
    return FakeIdentityProvider(dispatcher=dispatcher), dispatcher

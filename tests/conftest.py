import pytest
from sqlalchemy.exc import OperationalError

from models import CharacterRecord


class DummyQuery:
    def __init__(self, data):
        self.data = data

    def order_by(self, *args, **kwargs):
        return self

    def all(self):
        return list(self.data)


class DummySession:
    """In-memory stand-in for a SQLAlchemy session over the characters table."""

    def __init__(self, store, fail_on=None):
        self.store = store
        self.fail_on = fail_on or set()
        self.pending = {}
        self.deleted = []
        self.commits = 0
        self.rollbacks = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def _maybe_fail(self, operation):
        if operation in self.fail_on:
            raise OperationalError(operation, {}, Exception("database is gone"))

    def query(self, model):
        self._maybe_fail("query")
        return DummyQuery(self.store.values() if model is CharacterRecord else [])

    def get(self, model, record_id):
        self._maybe_fail("get")
        return self.store.get(record_id)

    def add(self, record):
        self.pending[record.id] = record

    def delete(self, record):
        self.deleted.append(record.id)

    def commit(self):
        self._maybe_fail("commit")
        self.store.update(self.pending)
        for record_id in self.deleted:
            self.store.pop(record_id, None)
        self.pending = {}
        self.deleted = []
        self.commits += 1

    def rollback(self):
        self.pending = {}
        self.deleted = []
        self.rollbacks += 1


@pytest.fixture
def record_store():
    return {}


@pytest.fixture
def session_factory(record_store):
    sessions = []

    def factory(fail_on=None):
        def make():
            session = DummySession(record_store, fail_on)
            sessions.append(session)
            return session

        return make

    factory.sessions = sessions
    return factory

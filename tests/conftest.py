import pytest

from app import create_app
from models import db, COLLECTIONS
from services import RecordStore

FIXED_NOW = '2026-01-01T00:00:00.000Z'


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def session(app):
    return db.session


@pytest.fixture
def store(app):
    return RecordStore(db.session, app.config)


@pytest.fixture
def put_raw(session):
    """Write a raw (possibly legacy) document straight into a collection."""
    def _put_raw(collection, record_id, data):
        session.add(COLLECTIONS[collection](id=record_id, data=data))
        session.commit()
    return _put_raw


@pytest.fixture
def raw_docs(session):
    """Read the raw stored documents of a collection, keyed by id."""
    def _raw_docs(collection):
        model = COLLECTIONS[collection]
        return {row.id: row.data for row in session.query(model).all()}
    return _raw_docs

# tests/conftest.py
"""
Shared fixtures for the pytest test suite.

- app: Flask app on the 'testing' config with an in-memory SQLite database
  and the test models' tables created.
- db_session: the Flask-SQLAlchemy session, rolled back after every test.
  Repositories only flush, so rollback leaves the database clean.
- memory_storage / memory_repository: BaseRepository over the in-memory fake.
"""

import pytest

from app import create_app
from extensions import db
from repositories import BaseRepository
from tests.fixtures import models as test_models  # noqa: F401  (registers tables)
from tests.fixtures.in_memory_storage import InMemoryStorage


@pytest.fixture(scope='session')
def app():
    """
    A Flask application instance shared by the whole test session.
    The tables are created once; isolation comes from db_session's rollback.
    """
    app = create_app(config_name='testing')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """A database session whose changes are discarded after each test."""
    session = db.session
    yield session
    session.rollback()
    session.expunge_all()


@pytest.fixture
def memory_storage():
    """Soft-deletable in-memory storage for a 'Widget' entity."""
    return InMemoryStorage('Widget', fields={'name', 'size', 'colour'})


@pytest.fixture
def memory_repository(memory_storage):
    return BaseRepository(memory_storage)

"""
Pytest configuration and fixtures for the gallery backend tests.

Provides test database isolation and common test utilities.
"""
import sys
import os
import pathlib

# Settings are read at import time: point the app at a throwaway database first
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in TEST_DATABASE_URL else {},
    poolclass=StaticPool if "sqlite" in TEST_DATABASE_URL else None,
    echo=False  # Set to True for SQL debugging
)

if "sqlite" in TEST_DATABASE_URL:
    # pysqlite defers BEGIN on its own, which turns SAVEPOINT/RELEASE into real
    # commits. Take over transaction control so the per-test rollback holds.
    @event.listens_for(test_engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN")

# Commits/rollbacks inside code under test only touch a savepoint
TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=test_engine,
    join_transaction_mode="create_savepoint",
)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """
    Create and tear down the test schema once per test session.
    """
    from gallery.db import Base
    from gallery import models  # noqa: F401  (registers models on Base)

    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    yield

    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def db():
    """
    Provide a clean database session for each test.

    The outer transaction is rolled back after each test so no data leaks
    between tests.
    """
    connection = test_engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


def override_get_db(db_session):
    """
    Helper function to create a dependency override for get_db.
    """
    def _override():
        yield db_session
    return _override


@pytest.fixture(scope="function")
def client(setup_test_db, db):
    """
    Provide a FastAPI TestClient bound to the test database.

    EXP deltas are applied through the same test session so background
    awards are visible to assertions.
    """
    from fastapi.testclient import TestClient
    from gallery.main import app
    from gallery.db import get_db
    from gallery.dependencies.services import get_exp_sink
    from gallery.services.experience import SqlExpDeltaSink, ExpMirror, IdleTickGate
    from gallery.services.notifications import NotificationChannel
    from gallery.services.rank_tiers import RankTierStore

    app.dependency_overrides[get_db] = override_get_db(db)
    app.dependency_overrides[get_exp_sink] = lambda: SqlExpDeltaSink(session=db)

    try:
        with TestClient(app, raise_server_exceptions=False) as test_client:
            store = RankTierStore(db)
            store.seed_defaults()
            app.state.tier_registry.load(store)
            app.state.exp_mirror = ExpMirror()
            app.state.idle_ticks = IdleTickGate()
            app.state.notifications = NotificationChannel()
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def member(db):
    from tests.helpers.gallery_helpers import create_profile
    return create_profile(db, "member", exp=0)


@pytest.fixture
def admin(db):
    from tests.helpers.gallery_helpers import create_profile
    return create_profile(db, "admin", role="admin", exp=0)

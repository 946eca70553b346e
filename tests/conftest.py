import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

from auctionhouse.database import Base, get_db
from auctionhouse.main import app
from auctionhouse.models import User


@pytest.fixture()
def _test_engine():
    """In-memory SQLite engine shared by client and db_session."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(_test_engine):
    TestSession = sessionmaker(bind=_test_engine)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture()
def db_session(_test_engine):
    """Direct DB session sharing the same in-memory engine as client."""
    Session = sessionmaker(bind=_test_engine)
    db = Session()
    yield db
    db.close()


@pytest.fixture()
def admin_headers(db_session):
    db_session.add(User(
        name="Admin",
        email="admin@example.com",
        is_admin=True,
        session_token="admin-token",
    ))
    db_session.commit()
    return {"Authorization": "Bearer admin-token"}


@pytest.fixture()
def user_headers(db_session):
    db_session.add(User(
        name="Collector",
        email="collector@example.com",
        session_token="user-token",
    ))
    db_session.commit()
    return {"Authorization": "Bearer user-token"}

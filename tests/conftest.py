import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from household_budget.db.core import Base, ProfileDB, get_db
from household_budget.main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_profile(db):
    """Factory creating committed profiles."""
    counter = {"n": 0}

    def _make(first_name: str = "Alex", last_name: str = "Doe") -> ProfileDB:
        counter["n"] += 1
        profile = ProfileDB(
            email=f"{first_name.lower()}{counter['n']}@example.com",
            first_name=first_name,
            last_name=last_name,
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


@pytest.fixture
def owner(make_profile):
    return make_profile("Olivia", "Owner")


@pytest.fixture
def auth_headers():
    """Headers the auth provider would forward for a signed-in profile."""
    def _headers(profile) -> dict:
        return {"X-User-Id": str(profile.id)}

    return _headers

import os
import sys
import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.pool import StaticPool

ROOT_DIR = os.path.dirname(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# keep app startup away from the on-disk default database
os.environ.setdefault("DATABASE_URL", "sqlite://")

from main import app, get_session  # noqa: E402
from repository import Repository  # noqa: E402


test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
DBSession = Session


@pytest.fixture(scope="function")
def session():
    """A session on a fresh in-memory database, for repository-level tests."""
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)
    with DBSession(test_engine) as db_session:
        yield db_session


@pytest.fixture
def repo(session):
    return Repository(session)


@pytest.fixture(scope="function")
def client():
    """Return a TestClient wired to a fresh in-memory database for each test."""
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)

    def override_get_session():
        with DBSession(test_engine) as db_session:
            yield db_session

    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_helpers(client):
    """
    Common auth utilities shared across test modules.
    Provides register/login helpers and a token helper.
    """

    def register_user(email: str, password: str, name: str = "Test User"):
        return client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password},
        )

    def login_user(email: str, password: str):
        return client.post("/auth/login", json={"email": email, "password": password})

    def get_token(email: str, password: str, name: str = "Test User") -> str:
        res_reg = register_user(email, password, name)
        assert res_reg.status_code in (201, 409)
        res_login = login_user(email, password)
        assert res_login.status_code == 200
        data = res_login.json()
        assert "access_token" in data
        return data["access_token"]

    def auth_headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    def login_as(email: str, password: str = "Secret123!") -> dict:
        """Register + login and return ready-to-use headers."""
        return auth_headers(get_token(email, password))

    return {
        "register_user": register_user,
        "login_user": login_user,
        "get_token": get_token,
        "auth_headers": auth_headers,
        "login_as": login_as,
    }

# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

from sayhi.auth import get_session_store
from sayhi.clock import now_ms
from sayhi.db import Base, get_db, make_engine, make_session_factory
from sayhi.main import app
from sayhi.session_store import MemorySessionStore


@pytest.fixture()
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store():
    return MemorySessionStore()


@pytest.fixture()
def client(session_factory, store):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(userid: str, token: str, timestamp: int | None = None) -> dict:
    return {
        "x-userid": userid,
        "x-token": token,
        "x-token-timestamp": str(now_ms() if timestamp is None else timestamp),
    }


@pytest.fixture()
def signup(client):
    """Register and log in a user, returning (userid, headers)."""

    def _signup(email: str, password: str = "secret", realname: str = "Tester", username: str = "username"):
        res = client.post(
            "/api/v1/users",
            json={"email": email, "password": password, "realname": realname, "username": username},
        )
        assert res.status_code == 200, res.text
        res = client.post("/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        data = res.json()["data"]
        return data["userid"], auth_headers(data["userid"], data["token"])

    return _signup

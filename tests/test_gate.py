# tests/test_gate.py
import pytest

from sayhi.clock import now_ms
from sayhi.gate import AccessPolicy, path_under
from sayhi.main import app
from sayhi.messaging import get_exchange
from sayhi.models import Message

from conftest import auth_headers


@pytest.mark.parametrize(
    "method,path,expected",
    [
        ("POST", "/checkUserAuth", True),
        ("GET", "/randomPickUsers", True),
        ("POST", "/sendMessage", True),
        ("GET", "/api/v1/messages", True),
        ("POST", "/api/v1/messages", True),
        ("DELETE", "/api/v1/messages/3", True),
        ("GET", "/api/v1/users/:abc", True),
        ("PUT", "/api/v1/users/abc", True),
        ("POST", "/api/v1/users", False),
        ("GET", "/api/v1/notifications/new", True),
        ("POST", "/login", False),
        ("GET", "/health", False),
        ("GET", "/api/v1/messagesarchive", False),
        ("GET", "/api/v1/usersettings", False),
        ("GET", "/checkUserAuth/extra", False),
    ],
)
def test_requires_auth(method, path, expected):
    assert AccessPolicy().requires_auth(method, path) is expected


def test_path_under_respects_segments():
    assert path_under("/api/v1/messages", "/api/v1/messages")
    assert path_under("/api/v1/messages/1", "/api/v1/messages/")
    assert not path_under("/api/v1/messages2", "/api/v1/messages")


def test_custom_policy_methods_are_case_insensitive():
    policy = AccessPolicy(exact_paths=(), resources={"/things": ("get",)})
    assert policy.requires_auth("GET", "/things/1")
    assert not policy.requires_auth("POST", "/things/1")


class CountingExchange:
    def __init__(self):
        self.calls = 0

    def send(self, *args, **kwargs):
        self.calls += 1
        raise AssertionError("handler must not run")


def test_send_without_token_never_reaches_handler(client, db):
    counter = CountingExchange()
    app.dependency_overrides[get_exchange] = lambda: counter

    res = client.post(
        "/api/v1/messages",
        json={"message": "hi", "receiver_userid": "u2"},
        headers={"x-userid": "u1", "x-token-timestamp": str(now_ms())},
    )

    assert res.json() == {"success": False, "errno": 2000, "errmsg": "fail to validate token"}
    assert counter.calls == 0
    assert db.query(Message).count() == 0


def test_expired_timestamp_is_rejected(client, signup, store):
    userid, headers = signup("a@example.com")
    late = auth_headers(userid, headers["x-token"], store.get_expiry(userid) + 1)

    res = client.get("/api/v1/messages", headers=late)

    assert res.status_code == 401
    assert res.json()["errno"] == 2000


def test_valid_session_passes(client, signup):
    _, headers = signup("a@example.com")
    res = client.get("/api/v1/messages", headers=headers)
    assert res.status_code == 200
    assert res.json()["success"] is True


def test_open_paths_need_no_token(client):
    assert client.get("/health").json() == {"status": "ok"}
    res = client.post("/login", json={"email": "ghost@example.com", "password": "x"})
    assert res.json()["errno"] == 2001

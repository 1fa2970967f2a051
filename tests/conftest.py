import mongomock
import pytest
from fastapi.testclient import TestClient
from firebase_admin import auth as firebase_auth

import auth
import database


class FakeTimer:
    """Stand-in for threading.Timer that only fires when told to"""

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        # Timer.cancel() cannot stop a callback that is already running;
        # tests for that race call .function directly
        if self.started and not self.cancelled:
            self.function()


def fake_verify_id_token(token, app=None, check_revoked=False):
    """
    Test tokens: "expired" and "bad" are rejected, "admin:<uid>" carries the
    admin claim and anything else is taken as a plain uid.
    """
    if token == "expired":
        raise firebase_auth.ExpiredIdTokenError("Token expired", None)
    if token == "bad":
        raise firebase_auth.InvalidIdTokenError("Signature mismatch")
    if token.startswith("admin:"):
        return {"uid": token[len("admin:"):], "admin": True, "name": "Support"}
    return {"uid": token}


@pytest.fixture(autouse=True)
def mongo_db(monkeypatch: pytest.MonkeyPatch):
    db = mongomock.MongoClient()["brainhints_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture(autouse=True)
def firebase(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(auth, "_app", lambda: None)
    monkeypatch.setattr(auth.firebase_auth, "verify_id_token", fake_verify_id_token)


@pytest.fixture()
def timers():
    created = []

    def factory(interval, function):
        timer = FakeTimer(interval, function)
        created.append(timer)
        return timer

    factory.created = created
    return factory


@pytest.fixture()
def admin_id() -> str:
    return "admin-1"


@pytest.fixture()
def client(mongo_db) -> TestClient:
    from main import app
    return TestClient(app)


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(admin_id):
    return bearer(f"admin:{admin_id}")


@pytest.fixture()
def user_headers():
    return bearer("user-1")

import pytest

from fleet_rental import create_app
from fleet_rental.config import TestConfig
from fleet_rental.models.store import Store
from fleet_rental.realtime import ChannelRegistry
from fleet_rental.utils.security import Identity, generate_hash, issue_token

PASSWORD = "Secret123"


@pytest.fixture(autouse=True)
def store(tmp_path, monkeypatch):
    """
    A fresh pickle-backed store under tmp_path, installed as the singleton
    so every service sees the SAME object.
    """
    monkeypatch.setenv("APP_ENV", "test")
    st = Store(tmp_path / "data.pkl")
    monkeypatch.setattr(Store, "_inst", st)
    yield st


@pytest.fixture(autouse=True)
def channels(monkeypatch):
    """A fresh real-time registry per test."""
    reg = ChannelRegistry(queue_size=10)
    monkeypatch.setattr(ChannelRegistry, "_inst", reg)
    yield reg


@pytest.fixture
def app(store, channels):
    return create_app(TestConfig)


@pytest.fixture(autouse=True)
def app_ctx(app):
    """Services sign tokens with the app's SECRET_KEY, so keep a context pushed."""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_user(store):
    """Insert an account directly (no registration side effects); return its Identity."""
    def _make(username, role="user"):
        doc = store.users.insert({
            "username": username,
            "email": f"{username}@example.com",
            "passwordHash": generate_hash(PASSWORD),
            "role": role,
            "phone": None,
        })
        return Identity(subject_id=doc["id"], email=doc["email"], role=role)

    return _make


@pytest.fixture
def make_car(store):
    def _make(plate="ABC123", daily_rate=100.0, **extra):
        doc = store.vehicles.insert({
            "make": extra.pop("make", "Toyota"),
            "model": extra.pop("model", "Corolla"),
            "year": 2022,
            "color": "White",
            "dailyRate": daily_rate,
            "mileage": 1000,
            "licensePlate": plate,
            "status": extra.pop("status", "available"),
            **extra,
        })
        return doc["id"]

    return _make


@pytest.fixture
def auth_header(app):
    def _header(identity: Identity) -> dict:
        token = issue_token(app.config["SECRET_KEY"], identity.subject_id, identity.email, identity.role)
        return {"Authorization": f"Bearer {token}"}

    return _header

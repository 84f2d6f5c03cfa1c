"""Shared fixtures: app on in-memory SQLite, logged-in admin client, services."""

import pytest

from app import create_app
from app.extensions import db as _db
from app.models import User
from app.utils.passwords import hash_password

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "Sup3rSecret!"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "RATELIMIT_ENABLED": False,
        "RECAPTCHA_REQUIRED": False,
        "BLOB_STORAGE_DIR": str(tmp_path / "blobs"),
        "DOCUMENT_TIMEZONE": "America/New_York",
    })

    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_user(app):
    user = User(name="Admin", email=ADMIN_EMAIL, role="admin", password_hash=hash_password(ADMIN_PASSWORD))
    _db.session.add(user)
    _db.session.commit()
    return user


@pytest.fixture
def admin_client(client, admin_user):
    resp = client.post("/admin/login", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 302
    return client


@pytest.fixture
def services(app):
    return app.extensions["documents"]


@pytest.fixture
def gateway(services):
    return services.gateway


@pytest.fixture
def blob_store(services):
    return services.blob_store


@pytest.fixture
def controller(services):
    return services.controller

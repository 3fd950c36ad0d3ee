from unittest import mock

import pytest

from app import create_app
from models import AdminUser, db
from modules.common.client import PortfolioClient, get_client

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "secret123"


@pytest.fixture
def app(tmp_path, monkeypatch):
    monkeypatch.delenv("LOGTAIL_TOKEN", raising=False)
    monkeypatch.delenv("REDIS_URL", raising=False)
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'portfolio.db'}",
            "STORAGE_ROOT": str(tmp_path / "storage"),
            "REDIS_URL": None,
            "AUTO_MIGRATE": "0",
            "PORTFOLIO_FETCH_WORKERS": 4,
        }
    )
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def portfolio(app, ctx):
    return get_client(app)


@pytest.fixture
def spy(portfolio):
    """Same backends, but every table/storage call is recorded."""
    return PortfolioClient(
        tables=mock.Mock(wraps=portfolio.tables),
        identity=portfolio.identity,
        storage=mock.Mock(wraps=portfolio.storage),
        pages=portfolio.pages,
    )


@pytest.fixture
def notes():
    """Collects (message, category) notifications."""
    out = []

    def notify(message, category="info"):
        out.append((message, category))

    notify.messages = out
    return notify


@pytest.fixture
def admin(app):
    with app.app_context():
        user = AdminUser(email=ADMIN_EMAIL)
        user.set_password(ADMIN_PASSWORD)
        db.session.add(user)
        db.session.commit()
    return {"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def signed_in(http, admin):
    resp = http.post("/admin/auth/login", data=admin)
    assert resp.status_code == 200
    return http

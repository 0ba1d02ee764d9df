import pytest
from fastapi.testclient import TestClient

from cacs_api.config import Settings
from cacs_api.main import create_app
from cacs_api.models.users import User
from cacs_api.utils.notifier import Notifier

TEST_SECRET = "unit-test-signing-secret-0123456789abcdef"
ADMIN_NOTIFY = "owner@cacs-mail.com"


def make_settings(**overrides) -> Settings:
    values = dict(
        ENVIRONMENT="test",
        DATABASE_URL="sqlite://",
        JWT_SECRET=TEST_SECRET,
        ADMIN_EMAIL=ADMIN_NOTIFY,
        NOTIFY_RETRY_DELAY=0,
        LOG_LEVEL="WARNING",
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def sent_emails():
    """Every EmailJob the notifier delivered, in order."""
    return []


@pytest.fixture
def notifier(sent_emails):
    return Notifier(sent_emails.append, maxsize=50, max_retries=2, retry_delay=0)


@pytest.fixture
def app(settings, notifier):
    return create_app(settings, notifier=notifier)


@pytest.fixture
def client(app):
    # Entering the context runs the lifespan: tables are created, notifier started
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db(app, client):
    session = app.state.session_factory(expire_on_commit=False)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def create_user(db):
    def _create(email="user@cacs-mail.com", password="userpass123", full_name="Plain User", is_admin=False):
        user = User(full_name=full_name, email=email, password=password, is_admin=is_admin)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _create


@pytest.fixture
def login(client):
    """Sign in and return the x-auth-token header for the account."""

    def _login(email, password, admin=False):
        path = "/api/auth/admin/login" if admin else "/api/auth/signin"
        resp = client.post(path, json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"x-auth-token": resp.json()["token"]}

    return _login


@pytest.fixture
def user_headers(create_user, login):
    create_user()
    return login("user@cacs-mail.com", "userpass123")


@pytest.fixture
def admin_headers(create_user, login):
    create_user(email="admin@cacs-mail.com", password="adminpass123", full_name="Site Admin", is_admin=True)
    return login("admin@cacs-mail.com", "adminpass123", admin=True)


@pytest.fixture
def settings_factory():
    return make_settings

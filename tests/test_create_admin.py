import pytest

from cacs_api.create_admin import ensure_admin, main
from cacs_api.database import init_db, make_engine, make_session_factory
from cacs_api.models.users import User


@pytest.fixture
def session():
    engine = make_engine("sqlite://")
    init_db(engine)
    db = make_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


def test_creates_admin(session):
    assert ensure_admin(session, "Admin@Cacs-Mail.com", "Admin User", "adminpass1") == "created"

    admin = session.query(User).one()
    assert admin.email == "admin@cacs-mail.com"
    assert admin.is_admin
    assert admin.check_password("adminpass1")


def test_promotes_existing_user(session):
    session.add(User(full_name="Jane", email="jane@x.com", password="pw123456"))
    session.commit()

    assert ensure_admin(session, "jane@x.com", "ignored", "newadminpass") == "promoted"

    jane = session.query(User).one()
    assert jane.is_admin
    assert jane.full_name == "Jane"
    assert jane.check_password("newadminpass")


def test_leaves_existing_admin_alone(session):
    session.add(User(full_name="Boss", email="boss@x.com", password="bosspass1", is_admin=True))
    session.commit()

    assert ensure_admin(session, "boss@x.com", "Boss", "otherpass1") == "exists"
    assert session.query(User).one().check_password("bosspass1")


def test_hash_only_prints_bcrypt_hash(monkeypatch, capsys):
    monkeypatch.setenv("ADMIN_PASSWORD", "printme-please")

    assert main(["--hash-only"]) == 0

    assert capsys.readouterr().out.strip().startswith("$2")


def test_short_password_is_refused(monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", "short")

    assert main(["--email", "a@b.com"]) == 1

from cacs_api.models.users import User
from cacs_api.utils.hashing import get_password_hash, verify_password


def test_hash_verifies_and_is_salted():
    first = get_password_hash("pw123456")
    second = get_password_hash("pw123456")

    assert first != "pw123456"
    assert first != second
    assert verify_password("pw123456", first)
    assert verify_password("pw123456", second)


def test_bcrypt_work_factor_is_ten():
    assert get_password_hash("secret-value").startswith(("$2b$10$", "$2a$10$"))


def test_wrong_password_is_rejected():
    hashed = get_password_hash("correct horse")
    assert not verify_password("battery staple", hashed)


def test_garbage_hash_does_not_raise():
    assert not verify_password("anything", "not-a-bcrypt-hash")
    assert not verify_password("anything", "")
    assert not verify_password("", get_password_hash("x"))


def test_assigning_password_on_user_stores_hash():
    user = User(full_name="Jane Doe", email="jane@x.com", password="pw123456")

    assert user.password_hash != "pw123456"
    assert user.check_password("pw123456")
    assert not user.check_password("pw1234567")

    user.password = "changed-pass"
    assert user.check_password("changed-pass")
    assert not user.check_password("pw123456")

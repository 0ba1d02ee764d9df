# cacs_api/models/users.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String

from cacs_api.database import Base
from cacs_api.utils.hashing import get_password_hash, verify_password


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Represents a site account; admins can reach the privileged routes
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_new_id)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    # Write-only: assigning a plaintext password stores its bcrypt hash
    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, plain: str):
        self.password_hash = get_password_hash(plain)

    def check_password(self, plain: str) -> bool:
        return verify_password(plain, self.password_hash)

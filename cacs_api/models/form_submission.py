# cacs_api/models/form_submission.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, String, Text

from cacs_api.database import Base

FORM_TYPES = ("contact", "quote", "other")


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# A contact or quote request sent from the public website
class FormSubmission(Base):
    __tablename__ = "form_submissions"
    __table_args__ = (
        CheckConstraint("form_type IN ('contact', 'quote', 'other')", name="ck_form_submissions_form_type"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, index=True)
    subject = Column(String, nullable=True)
    message = Column(Text, nullable=True)

    # Quote form fields
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    mobile = Column(String, nullable=True)
    city = Column(String, nullable=True)
    service = Column(String, nullable=True)

    form_type = Column(String(20), nullable=False, default="other")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)

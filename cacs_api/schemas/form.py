from datetime import datetime
from typing import List, Literal, Optional

from pydantic import EmailStr, field_validator

from cacs_api.schemas.user import CamelModel

FormType = Literal["contact", "quote", "other"]


# Payload posted by the public contact / quote forms
class FormSubmit(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    mobile: Optional[str] = None
    city: Optional[str] = None
    service: Optional[str] = None
    form_type: FormType = "other"

    def canonical_name(self) -> Optional[str]:
        if self.name:
            return self.name
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or None


# Partial update; name and email may change but never become blank
class FormSubmissionUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    mobile: Optional[str] = None
    city: Optional[str] = None
    service: Optional[str] = None
    form_type: Optional[FormType] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if v is not None and not v:
            raise ValueError("name cannot be empty")
        return v


class FormSubmissionResponse(CamelModel):
    id: str
    name: str
    email: str
    subject: Optional[str] = None
    message: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    mobile: Optional[str] = None
    city: Optional[str] = None
    service: Optional[str] = None
    form_type: str
    created_at: datetime


class SubmitResponse(CamelModel):
    success: bool = True
    message: str
    submission_id: str


class SubmissionEnvelope(CamelModel):
    success: bool = True
    submission: FormSubmissionResponse


class SubmissionList(CamelModel):
    success: bool = True
    count: int
    submissions: List[FormSubmissionResponse]

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel


# Wire format is camelCase (fullName, isAdmin); Python side stays snake_case
class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# Credentials are hashed and compared exactly as typed, so only the
# identity fields are trimmed here
class CredentialsModel(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=False)

    @field_validator("full_name", "email", mode="before", check_fields=False)
    @classmethod
    def strip_identity(cls, v):
        return v.strip() if isinstance(v, str) else v


# Schema for user registration requests; presence is checked by the handler
class UserCreate(CredentialsModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


# Schema for user authentication credentials
class UserLogin(CredentialsModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None


# Partial profile update; empty values are ignored
class UserUpdate(CredentialsModel):
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None


# Schema for administrative promotion / demotion
class AdminFlagUpdate(CamelModel):
    is_admin: bool


# Public identity; the password hash is never part of it
class UserResponse(CamelModel):
    id: str
    full_name: str
    email: str
    is_admin: bool = False
    created_at: Optional[datetime] = None


class UserEnvelope(CamelModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse


class UserList(CamelModel):
    success: bool = True
    count: int
    users: List[UserResponse]


# Schema for the token returned by signin / admin login
class TokenResponse(CamelModel):
    success: bool = True
    message: str
    token: str
    user: UserResponse


class MessageResponse(CamelModel):
    success: bool = True
    message: str

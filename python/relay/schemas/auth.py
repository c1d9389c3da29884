"""Auth request/response schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2


class SignupRequest(BaseModel):
    """Body for POST /auth/signup."""

    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    name: str | None = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str | None) -> str | None:
        """Trim the name; reject names shorter than two characters."""
        if v is None:
            return None
        v = v.strip()
        if len(v) < MIN_NAME_LENGTH:
            raise ValueError(f"Name must be at least {MIN_NAME_LENGTH} characters long")
        return v


class LoginRequest(BaseModel):
    """Body for POST /auth/login."""

    email: EmailStr
    password: str = Field(min_length=1)


class UserOut(BaseModel):
    """Public user profile. Never carries the password hash."""

    id: UUID
    email: str
    name: str | None = None
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True)

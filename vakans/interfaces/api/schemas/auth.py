"""Authentication related schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from vakans.domain.entities import UserRole


class Token(BaseModel):
    access_token: str
    token_type: str
    role: UserRole


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: str = Field(default="", max_length=50)
    role: UserRole = UserRole.CANDIDATE
    company_name: str | None = Field(default=None, max_length=120)


class UserRead(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    company_name: str | None = None
    is_blocked: bool
    created_at: datetime | None = None
    last_seen_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)

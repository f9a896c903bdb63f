from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from gateway.schemas.product import RecordId


class UserProfile(BaseModel):
    """Directus user record as embedded in gateway tokens."""

    id: RecordId
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Optional[str] = "user"
    status: Optional[str] = "active"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"extra": "ignore"}


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserCreate(UserLogin):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)


class BackendSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires: Optional[int] = None

    model_config = {"extra": "ignore"}

"""
API user accounts (``users`` collection).
"""

from typing import Optional

from pydantic import EmailStr, Field, field_validator

from domain.enums import UserRole, UserStatus
from domain.models.base import DocumentModel, UtcDatetime


class User(DocumentModel):
    username: str = Field(..., min_length=3, max_length=30)
    email: EmailStr
    password_hash: str = Field(..., alias="passwordHash")
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")
    login_count: int = Field(default=0, ge=0, alias="loginCount")
    last_login: Optional[UtcDatetime] = Field(default=None, alias="lastLogin")

    @field_validator("username", "email", mode="before")
    @classmethod
    def normalize(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE.value

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

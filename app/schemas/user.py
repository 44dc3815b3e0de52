"""
Pydantic schemas for user and authentication operations
"""

from pydantic import BaseModel, Field, validator, EmailStr
from typing import Optional
from datetime import datetime
import re

SIGNUP_ROLES = ("donor", "recipient")


def _required_text(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("This field is required")
    return v


class SignupRequest(BaseModel):
    """Schema for creating a new account"""
    name: str = Field(..., max_length=100, description="Full name")
    email: EmailStr = Field(..., description="Valid email address")
    password: str = Field(..., min_length=8, max_length=128, description="Password (minimum 8 characters)")
    role: str = Field(..., description="donor or recipient")
    phone: str = Field(..., max_length=30, description="Phone number")
    address: str = Field(..., max_length=500, description="Postal address")

    @validator("name", "phone", "address")
    def validate_required_text(cls, v):
        return _required_text(v)

    @validator("email")
    def normalize_email(cls, v):
        return v.strip().lower()

    @validator("role")
    def validate_role(cls, v):
        v = (v or "").strip().lower()
        if v not in SIGNUP_ROLES:
            raise ValueError(f'Role must be one of: {", ".join(SIGNUP_ROLES)}')
        return v

    @validator("phone")
    def validate_phone(cls, v):
        digits_only = re.sub(r"\D", "", v)
        if len(digits_only) < 7 or len(digits_only) > 15:
            raise ValueError("Phone number must be between 7-15 digits")
        return v


class LoginRequest(BaseModel):
    """Schema for login"""
    email: str = Field(..., description="Email address")
    password: str = Field(..., description="Password")

    @validator("email")
    def validate_email(cls, v):
        return _required_text(v).lower()

    @validator("password")
    def validate_password(cls, v):
        if not v:
            raise ValueError("This field is required")
        return v


class EmailRequest(BaseModel):
    """Schema for endpoints that only take an email"""
    email: str = Field(..., description="Email address")

    @validator("email")
    def validate_email(cls, v):
        return _required_text(v).lower()


class PasswordChange(BaseModel):
    """Schema for password change"""
    current_password: str = Field(..., min_length=1, description="Current password")
    new_password: str = Field(..., min_length=8, max_length=128, description="New password")


class ResetPasswordRequest(BaseModel):
    """Schema for consuming a password reset token"""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class VerifyEmailConfirm(BaseModel):
    token: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile"""
    name: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=500)

    @validator("name", "phone", "address")
    def strip_text(cls, v):
        return v.strip() if v else v


class UserSummary(BaseModel):
    """Minimal user block returned by signup and login"""
    id: int
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    """Schema for user responses (excludes password and token digests)"""
    phone: Optional[str] = None
    address: Optional[str] = None
    image: Optional[str] = None
    is_verified: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    message: str
    user: UserSummary


class ProfileResponse(BaseModel):
    message: str
    user: UserResponse


class CheckEmailResponse(BaseModel):
    exists: bool


class AvatarResponse(BaseModel):
    avatar_url: str


class MessageResponse(BaseModel):
    message: str

"""Account domain schemas"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from ...schemas import UserResponse


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    name: Optional[str] = None


class SignUpResponse(BaseModel):
    success: bool = True
    needs_verification: bool = True
    user_id: str


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class SessionResponse(BaseModel):
    """The session secret is the Bearer token for authenticated endpoints"""

    session_secret: str
    expires: Optional[str] = None
    user: UserResponse


class VerifyEmailRequest(BaseModel):
    userId: str
    secret: str


class ResendVerificationRequest(BaseModel):
    email: EmailStr
    password: str


class RecoveryRequest(BaseModel):
    email: EmailStr


class RecoveryCompleteRequest(BaseModel):
    userId: str
    secret: str
    password: str = Field(..., min_length=8)


class ProfileUpdate(BaseModel):
    name: str
    email: Optional[EmailStr] = None
    password: Optional[str] = None  # Appwrite requires it to change email


class OAuthCallbackRequest(BaseModel):
    userId: str
    secret: str


class OAuthStartResponse(BaseModel):
    url: str

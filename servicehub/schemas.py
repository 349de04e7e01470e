from typing import Optional

from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Signed-in user resolved from the session secret"""

    id: str
    email: str
    name: Optional[str] = None
    email_verified: bool = False
    session_secret: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str]
    email_verified: bool


class MessageResponse(BaseModel):
    message: str

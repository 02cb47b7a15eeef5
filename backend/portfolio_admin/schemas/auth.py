"""Authentication schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Admin login request"""

    password: str = Field(..., description="Admin password")
    recaptcha_token: Optional[str] = Field(
        None,
        alias="recaptchaToken",
        description="reCAPTCHA v3 token obtained by the client for action 'login'",
    )

    class Config:
        populate_by_name = True


class TokenResponse(BaseModel):
    """Issued session token (login and refresh)"""

    token: str
    expires_in: int = Field(..., alias="expiresIn", description="Seconds until the token expires")
    expires_at: datetime = Field(..., alias="expiresAt")

    class Config:
        populate_by_name = True


class LogoutResponse(BaseModel):
    ok: bool = True


class SessionInfoResponse(BaseModel):
    """Current session timing, used by clients to re-sync their expiry timer"""

    issued_at: datetime = Field(..., alias="issuedAt")
    expires_at: datetime = Field(..., alias="expiresAt")
    last_activity: datetime = Field(..., alias="lastActivity")
    seconds_left: int = Field(..., alias="secondsLeft")

    class Config:
        populate_by_name = True

"""
Authentication schemas.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

from authsvc.kernel.identity.password import MAX_PASSWORD_BYTES


class Credentials(BaseModel):
    """Username and password, used for both registration and login."""

    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=6, max_length=MAX_PASSWORD_BYTES)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        if v != v.strip():
            raise ValueError("Username must not start or end with whitespace")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v.encode("utf-8", "surrogatepass")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class AccountResponse(BaseModel):
    """Public view of an account."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str


class TokenResponse(BaseModel):
    """Authentication token response."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until the token expires
    account: AccountResponse

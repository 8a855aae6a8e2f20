"""
Pydantic schemas for registration and login.
"""

from pydantic import BaseModel, Field, field_validator


class Credentials(BaseModel):
    """Body of ``POST /auth/register`` and ``POST /auth/login``."""

    username: str = Field(..., min_length=1, max_length=50, examples=["alice"])
    password: str = Field(..., min_length=1, max_length=72, examples=["s3cret-pass"])

    @field_validator("username")
    @classmethod
    def validate_username_not_blank(cls, v: str) -> str:
        """Reject whitespace-only usernames and drop surrounding spaces."""
        if not v.strip():
            raise ValueError("username must not be blank")
        return v.strip()


class TokenResponse(BaseModel):
    """Bearer token issued on successful login."""

    token: str
    token_type: str = "bearer"

"""
Shared Pydantic schemas used across endpoints.

Documents the error envelopes in OpenAPI so clients can discover the error
contract, not just the happy path.
"""

from typing import List

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error envelope returned by all non-validation error handlers."""

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(
        ...,
        description="Human-readable error description",
        examples=["Investment with id '42' not found"],
    )


class ValidationErrorDetail(BaseModel):
    """Single field-level validation failure."""

    field: str = Field(
        ...,
        description="Arrow-separated path to the invalid field",
        examples=["query -> startDate"],
    )
    message: str = Field(
        ...,
        description="Explanation of the validation failure",
        examples=["Input should be a valid date"],
    )


class ValidationErrorResponse(BaseModel):
    """Response body for a malformed request (400)."""

    error: bool = Field(default=True, description="Always ``true`` for errors")
    message: str = Field(default="Validation failed", description="Summary message")
    details: List[ValidationErrorDetail] = Field(..., description="Per-field validation failures")


class MessageResponse(BaseModel):
    """Plain acknowledgement body."""

    message: str = Field(..., examples=["User registered successfully"])

"""
Auth API endpoints.

- POST  /auth/register  — Create an account
- POST  /auth/login     — Exchange credentials for a bearer token
"""

from fastapi import APIRouter, Depends

from invest_track.api.deps import get_auth_service
from invest_track.schemas.auth import Credentials, TokenResponse
from invest_track.schemas.common import ErrorResponse, MessageResponse, ValidationErrorResponse
from invest_track.services.auth_service import AuthService

router = APIRouter()


@router.post(
    "/register",
    response_model=MessageResponse,
    summary="Register a new user",
    responses={
        400: {
            "model": ErrorResponse,
            "description": "Username already taken, or malformed body",
        },
    },
)
async def register(
    credentials: Credentials,
    service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await service.register(credentials.username, credentials.password)
    return MessageResponse(message="User registered successfully")


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Log in",
    description="Returns a bearer token to send as ``Authorization: Bearer <token>``.",
    responses={
        400: {"model": ValidationErrorResponse, "description": "Malformed body"},
        401: {"model": ErrorResponse, "description": "Incorrect username or password"},
    },
)
async def login(
    credentials: Credentials,
    service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    token = await service.authenticate(credentials.username, credentials.password)
    return TokenResponse(token=token)

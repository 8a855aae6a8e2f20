"""
Shared FastAPI dependencies.

``get_current_user`` turns the ``Authorization: Bearer <token>`` header into
a :class:`User`.  Endpoints and services only ever see the resolved user.
"""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from invest_track.core.config import settings
from invest_track.db.session import get_db
from invest_track.models.user import User
from invest_track.repositories.user_repo import UserRepository
from invest_track.services.auth_service import AuthService

# Only reads the header; login itself takes a JSON body.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Build an AuthService wired to the current request's DB session."""
    return AuthService(UserRepository(User, db))


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    """Resolve the bearer token to a user; 401 when missing, invalid or stale."""
    return await auth.resolve_user(token)

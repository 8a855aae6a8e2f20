"""
Auth service — registration, login and bearer-token resolution.

Race condition note:
    The ``get_by_username()`` pre-check followed by the insert can be raced
    by two concurrent registrations of the same name.  The unique index is
    the real guard; the resulting ``IntegrityError`` is translated to the
    same :class:`ConflictException` the pre-check raises.
"""

import logging

from sqlalchemy.exc import IntegrityError

from invest_track.core.exceptions import AuthenticationException, ConflictException
from invest_track.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from invest_track.db.session import unit_of_work
from invest_track.models.user import User
from invest_track.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)

USERNAME_TAKEN = "Username is already taken"
BAD_CREDENTIALS = "Incorrect username or password"


class AuthService:
    """Encapsulates account creation and credential checks for :class:`User`."""

    def __init__(self, user_repo: UserRepository):
        self._repo = user_repo

    async def register(self, username: str, password: str) -> User:
        """
        Create an account storing only the bcrypt hash of ``password``.

        Raises :class:`ConflictException` if ``username`` is taken.
        """
        if await self._repo.get_by_username(username) is not None:
            logger.warning("Registration rejected: username '%s' already taken", username)
            raise ConflictException(USERNAME_TAKEN)

        user = User(username=username, password_hash=hash_password(password))
        try:
            async with unit_of_work(self._repo.db):
                created = await self._repo.add(user)
        except IntegrityError:
            logger.warning(
                "IntegrityError caught for duplicate username '%s' (TOCTOU race)", username
            )
            raise ConflictException(USERNAME_TAKEN)

        logger.info("Registered user %s (%s)", created.id, created.username)
        return created

    async def authenticate(self, username: str, password: str) -> str:
        """
        Check credentials and issue a bearer token.

        Unknown usernames and wrong passwords raise the same
        :class:`AuthenticationException`.
        """
        user = await self._repo.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login for username '%s'", username)
            raise AuthenticationException(BAD_CREDENTIALS)

        logger.info("User %s logged in", user.id)
        return create_access_token(user.username)

    async def resolve_user(self, token: str) -> User:
        """Map a bearer token to its :class:`User`, or raise :class:`AuthenticationException`."""
        username = decode_access_token(token)
        user = await self._repo.get_by_username(username)
        if user is None:
            raise AuthenticationException("User for this token no longer exists")
        return user

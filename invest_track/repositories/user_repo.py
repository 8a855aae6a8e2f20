"""
User repository — data-access layer for the ``users`` table.
"""

from typing import Optional

from sqlalchemy.future import select

from invest_track.models.user import User
from invest_track.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Concrete repository for :class:`User` entities."""

    async def get_by_username(self, username: str) -> Optional[User]:
        """
        Look up a user by username.

        Used for login, bearer-token resolution and the duplicate check at
        registration.
        """
        stmt = select(self.model).where(self.model.username == username)
        result = await self.db.execute(stmt)
        return result.scalars().first()

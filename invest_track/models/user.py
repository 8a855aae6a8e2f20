"""
User domain model.

A registered account.  Owns every investment it created; deleting a user
removes those investments too.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from invest_track.models.investment import Investment


class User(SQLModel, table=True):
    """
    SQLModel / SQLAlchemy table definition for users.

    - ``username`` has a unique index; duplicate registrations are rejected
      at DB level even if the service pre-check is raced.
    - ``password_hash`` holds a bcrypt hash, never the plaintext.
    """

    __tablename__ = "users"  # type: ignore[assignment]

    __table_args__ = (
        CheckConstraint("length(username) > 0", name="ck_users_username_not_empty"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=50)
    password_hash: str = Field(max_length=255)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        nullable=False,
        sa_type=DateTime(timezone=True),  # type: ignore[arg-type]
    )

    # ── Relationships ──
    investments: List["Investment"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username='{self.username}'>"

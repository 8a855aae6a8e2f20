"""SQLModel table models — import here so metadata is populated."""

from invest_track.models.user import User  # noqa: F401
from invest_track.models.investment import Investment  # noqa: F401

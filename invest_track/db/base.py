"""
Database model registry.

Importing this module registers every table model with SQLModel's metadata,
which is required before calling ``create_all()``.
"""

from invest_track.models.user import User  # noqa: F401
from invest_track.models.investment import Investment  # noqa: F401

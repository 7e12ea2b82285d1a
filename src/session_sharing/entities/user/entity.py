"""User domain entity."""

from pydantic import Field

from src.session_sharing.entities._base import Entity


class User(Entity):
    """Local forum account.

    Accounts are owned by the forum; session sharing only creates them and
    looks them up by email for merges.
    """

    username: str = Field(description="Display name, trimmed")
    email: str | None = Field(default=None, description="User's email address")
    picture: str | None = Field(default=None, description="Avatar URL")

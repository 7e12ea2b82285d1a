"""User database table model."""

from sqlalchemy import Column, String
from sqlmodel import Field

from src.session_sharing.entities._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users.

    The unique email column doubles as the email to account index used for
    merge lookups.
    """

    __tablename__ = "users"

    username: str = Field(sa_column=Column(String(255), nullable=False, index=True))
    email: str | None = Field(
        default=None, sa_column=Column(String(320), nullable=True, unique=True)
    )
    picture: str | None = Field(default=None, sa_column=Column(String(2048), nullable=True))

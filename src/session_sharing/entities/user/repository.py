"""User data access layer."""

from sqlalchemy import func
from sqlmodel import Session, select

from src.session_sharing.entities.user.entity import User
from src.session_sharing.entities.user.table import UserTable


class UserRepository:
    """Data-access layer for users."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, user_id: int) -> User | None:
        row = self._session.get(UserTable, user_id)
        if row is None:
            return None
        return User.model_validate(row, from_attributes=True)

    def get_uid_by_email(self, email: str) -> int | None:
        """Look up an account id by email, case-insensitively."""
        statement = select(UserTable.id).where(func.lower(UserTable.email) == email.lower())
        return self._session.exec(statement).first()

    def create(self, user: User) -> User:
        """Insert ``user`` and return it with the database-assigned id."""
        row = UserTable.model_validate(user, from_attributes=True)
        self._session.add(row)
        self._session.flush()
        self._session.refresh(row)
        return User.model_validate(row, from_attributes=True)

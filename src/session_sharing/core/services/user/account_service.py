"""Account subsystem adapter used by the identity resolver."""

from fastapi.concurrency import run_in_threadpool
from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.session_sharing.core.errors import AccountCreationError, StorageError
from src.session_sharing.core.services.database.db_session import DbSessionService
from src.session_sharing.entities.user import User, UserRepository


class AccountService:
    """Look up and create local accounts.

    Each call opens its own database session and runs in the threadpool, so
    calls can be awaited concurrently with other lookups.
    """

    def __init__(self, db_service: DbSessionService):
        self._db = db_service

    def _get_uid_by_email(self, email: str) -> int | None:
        with self._db.session_scope() as session:
            return UserRepository(session).get_uid_by_email(email)

    def _create(self, user: User) -> int:
        with self._db.session_scope() as session:
            created = UserRepository(session).create(user)
        if created.id is None:
            raise AccountCreationError("Account subsystem returned no id")
        return created.id

    async def get_uid_by_email(self, email: str) -> int | None:
        try:
            return await run_in_threadpool(self._get_uid_by_email, email)
        except SQLAlchemyError as e:
            raise StorageError(f"Email lookup failed: {e}") from e

    async def create_account(
        self, username: str, email: str | None = None, picture: str | None = None
    ) -> int:
        """Create an account and return its id."""
        if not username:
            raise AccountCreationError("Username must not be empty")

        try:
            uid = await run_in_threadpool(
                self._create, User(username=username, email=email, picture=picture)
            )
        except IntegrityError as e:
            raise AccountCreationError(f"Account conflicts with an existing one: {e.orig}") from e
        except SQLAlchemyError as e:
            raise AccountCreationError(f"Account creation failed: {e}") from e

        logger.info("Created account {} for {}", uid, username)
        return uid

    async def get_user(self, uid: int) -> User | None:
        def _get() -> User | None:
            with self._db.session_scope() as session:
                return UserRepository(session).get(uid)

        try:
            return await run_in_threadpool(_get)
        except SQLAlchemyError as e:
            raise StorageError(f"Account lookup failed: {e}") from e

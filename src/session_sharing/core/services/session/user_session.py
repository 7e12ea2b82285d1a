import secrets

from src.session_sharing.core.models.session import UserSession
from src.session_sharing.core.storage.kv_storage import KeyValueStorage


class UserSessionService:
    """Service for managing local login sessions."""

    def __init__(self, storage: KeyValueStorage, session_max_age: int) -> None:
        self._storage = storage
        self._max_age = session_max_age

    async def create_user_session(self, user_id: int) -> str:
        """Create a session for ``user_id`` and return its id."""
        user_session = UserSession.create(
            session_id=secrets.token_urlsafe(32),
            user_id=user_id,
            session_max_age=self._max_age,
        )
        await self._storage.set(f"user:{user_session.id}", user_session, self._max_age)
        return user_session.id

    async def get_user_session(self, session_id: str) -> UserSession | None:
        """Get user session by ID.

        Returns:
            User session or None if not found/expired
        """
        user_session = await self._storage.get(f"user:{session_id}", UserSession)
        if not user_session:
            return None

        if user_session.is_expired():
            await self._storage.delete(f"user:{session_id}")
            return None

        user_session.update_access()
        await self._storage.set(f"user:{user_session.id}", user_session, self._max_age)
        return user_session

    async def delete_user_session(self, session_id: str) -> None:
        await self._storage.delete(f"user:{session_id}")

    async def purge_expired(self) -> int:
        return await self._storage.cleanup_expired()

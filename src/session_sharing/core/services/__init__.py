"""Core services exports."""

from src.session_sharing.core.storage.kv_storage import InMemoryStorage, RedisStorage

from .database.db_session import DbSessionService
from .identity.identity_resolver import IdentityResolver
from .jwt.jwt_verify import TokenVerifier
from .session.user_session import UserSessionService
from .session_sharing import SessionSharingService
from .user.account_service import AccountService

__all__ = [
    "AccountService",
    "DbSessionService",
    "IdentityResolver",
    "InMemoryStorage",
    "RedisStorage",
    "SessionSharingService",
    "TokenVerifier",
    "UserSessionService",
]

from dataclasses import dataclass

from src.session_sharing.core.services import (
    AccountService,
    DbSessionService,
    SessionSharingService,
    UserSessionService,
)
from src.session_sharing.core.storage import KeyValueStorage


@dataclass
class ApplicationDependencies:
    storage: KeyValueStorage
    database_service: DbSessionService
    account_service: AccountService
    session_sharing_service: SessionSharingService
    user_session_service: UserSessionService

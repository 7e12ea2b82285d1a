"""FastAPI dependency implementations."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from src.session_sharing.api.http.app_data import ApplicationDependencies
from src.session_sharing.core.services import (
    AccountService,
    SessionSharingService,
    UserSessionService,
)
from src.session_sharing.entities.user import User
from src.session_sharing.runtime.config.config_data import ConfigData


def get_app_config(request: Request) -> ConfigData:
    """Configuration the running application was built with."""
    return request.app.state.config


def get_account_service(request: Request) -> AccountService:
    """Get the account service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.account_service


def get_session_sharing_service(request: Request) -> SessionSharingService:
    """Get the session sharing service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.session_sharing_service


def get_user_session_service(request: Request) -> UserSessionService:
    """Get the User Session service instance."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.user_session_service


def get_current_uid(request: Request) -> int:
    uid = getattr(request.state, "uid", None)
    if not uid:
        raise HTTPException(status_code=401, detail="Authentication required")
    return uid


async def get_current_user(
    uid: int = Depends(get_current_uid),
    accounts: AccountService = Depends(get_account_service),
) -> User:
    """Load the account of the logged-in user."""
    user = await accounts.get_user(uid)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def require_admin(
    uid: int = Depends(get_current_uid),
    config: ConfigData = Depends(get_app_config),
) -> int:
    """Require the logged-in user to be listed in ``session_sharing.admin_uids``."""
    if uid not in config.session_sharing.admin_uids:
        raise HTTPException(status_code=403, detail="Administrator access required")
    return uid

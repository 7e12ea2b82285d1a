"""Local session endpoints."""

from fastapi import APIRouter, Depends, Request, Response
from loguru import logger

from src.session_sharing.api.http.deps import (
    get_app_config,
    get_current_user,
    get_session_sharing_service,
    get_user_session_service,
)
from src.session_sharing.core.services import SessionSharingService, UserSessionService
from src.session_sharing.entities.user import User
from src.session_sharing.runtime.config.config_data import ConfigData

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
async def get_me(user: User = Depends(get_current_user)) -> dict:
    """Account of the logged-in user."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "picture": user.picture,
    }


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    config: ConfigData = Depends(get_app_config),
    user_session_service: UserSessionService = Depends(get_user_session_service),
    sharing: SessionSharingService = Depends(get_session_sharing_service),
) -> dict[str, str]:
    """End the local session.

    When a cookie domain is configured the shared token cookie is cleared as
    well, so the next request does not log the user straight back in.
    """
    session_id = request.cookies.get(config.app.session_cookie_name)
    if session_id:
        await user_session_service.delete_user_session(session_id)
    response.delete_cookie(config.app.session_cookie_name, path="/")

    if sharing.ready and sharing.settings.cookie_domain:
        settings = sharing.settings
        response.delete_cookie(settings.cookie_name, domain=settings.cookie_domain, path="/")
        logger.debug("Cleared {} cookie on {}", settings.cookie_name, settings.cookie_domain)

    return {"message": "Logged out"}

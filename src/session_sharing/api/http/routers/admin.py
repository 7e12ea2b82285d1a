"""Administration endpoints for the session sharing settings."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger

from src.session_sharing.api.http.deps import get_session_sharing_service, require_admin
from src.session_sharing.core.errors import ConfigurationError
from src.session_sharing.core.services import SessionSharingService
from src.session_sharing.runtime.config.config_template import load_config
from src.session_sharing.runtime.config.settings import EnvironmentVariables

router = APIRouter(
    prefix="/admin/session-sharing",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _state(sharing: SessionSharingService) -> dict[str, Any]:
    return {
        "ready": sharing.ready,
        "settings": sharing.settings.redacted() if sharing.ready else None,
    }


@router.get("")
async def get_settings(
    sharing: SessionSharingService = Depends(get_session_sharing_service),
) -> dict[str, Any]:
    """Current settings snapshot, without the secret."""
    return _state(sharing)


@router.post("/reload")
async def reload_settings(
    request: Request,
    sharing: SessionSharingService = Depends(get_session_sharing_service),
) -> dict[str, Any]:
    """Re-read the configuration file and swap in the new settings.

    A configuration without a secret disables session sharing and answers 409.
    """
    config = load_config(EnvironmentVariables().config_file)
    try:
        sharing.reload_settings(config)
    except ConfigurationError as e:
        raise HTTPException(status_code=409, detail=e.message) from e

    request.app.state.config = request.app.state.config.model_copy(
        update={"session_sharing": config.session_sharing}
    )
    logger.info("Session sharing settings reloaded")
    return _state(sharing)

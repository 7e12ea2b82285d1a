"""Per-request session gate.

Runs before every route. Requests that already carry a local login session,
requests for static assets and requests made while session sharing is not
configured pass straight through. Otherwise the shared token cookie, if
present, is run through the login pipeline and a local session is started
for the resolved account. A failed login never blocks the request.
"""

from urllib.parse import quote

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse, Response

from src.session_sharing.api.http.app_data import ApplicationDependencies
from src.session_sharing.core.errors import (
    InvalidPayloadError,
    SessionSharingError,
    VerificationFailure,
)
from src.session_sharing.core.models import UserSession
from src.session_sharing.core.services.identity.identity_resolver import parse_uid
from src.session_sharing.runtime.config.config_data import AppConfig

# Characters encodeURIComponent leaves alone
_URI_COMPONENT_SAFE = "-_.!~*'()"


def guest_redirect_url(template: str, base_url: str, path: str) -> str:
    """Fill the ``%1`` placeholder with the percent-encoded original URL."""
    return template.replace("%1", quote(base_url + path, safe=_URI_COMPONENT_SAFE))


class SessionGateMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, exempt_paths: tuple[str, ...] = ()):
        super().__init__(app)
        self.exempt_paths = exempt_paths

    async def dispatch(self, request: Request, call_next) -> Response:
        app_deps: ApplicationDependencies = request.app.state.app_dependencies
        app_config: AppConfig = request.app.state.config.app
        sharing = app_deps.session_sharing_service

        request.state.uid = None
        request.state.user_session = None
        user_session = await self._load_session(request, app_deps, app_config)
        if user_session is not None:
            request.state.uid = user_session.user_id
            request.state.user_session = user_session
            return await call_next(request)

        if not sharing.ready or request.url.path in self.exempt_paths:
            return await call_next(request)

        settings = sharing.settings
        if settings.asset_blacklist.match(request.url.path):
            return await call_next(request)

        token = request.cookies.get(settings.cookie_name)
        if not token:
            if settings.guest_redirect:
                target = guest_redirect_url(
                    settings.guest_redirect, app_config.base_url, request.url.path
                )
                return RedirectResponse(target, status_code=302)
            return await call_next(request)

        try:
            uid = await sharing.process(token)
            session_id = await app_deps.user_session_service.create_user_session(uid)
        except InvalidPayloadError:
            logger.warning("The passed-in payload was invalid and could not be processed")
            return await call_next(request)
        except VerificationFailure as e:
            logger.warning("Error encountered while parsing token: {}", e.message)
            return await call_next(request)
        except SessionSharingError as e:
            logger.error("Session sharing login failed ({}): {}", e.code, e.message)
            return await call_next(request)

        request.state.uid = uid
        logger.debug("Logged in account {} from shared session", uid)

        response = await call_next(request)
        response.set_cookie(
            app_config.session_cookie_name,
            session_id,
            max_age=app_config.session_max_age,
            httponly=True,
            secure=app_config.secure_cookies,
            samesite="lax",
            path="/",
        )
        return response

    @staticmethod
    async def _load_session(
        request: Request, app_deps: ApplicationDependencies, app_config: AppConfig
    ) -> UserSession | None:
        session_id = request.cookies.get(app_config.session_cookie_name)
        if not session_id:
            return None

        try:
            user_session = await app_deps.user_session_service.get_user_session(session_id)
        except SessionSharingError as e:
            logger.error("Could not load local session: {}", e.message)
            return None

        if user_session is None or parse_uid(user_session.user_id) is None:
            return None
        return user_session

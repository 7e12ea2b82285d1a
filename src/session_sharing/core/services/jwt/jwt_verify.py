"""Shared-token verification service."""

import time
from collections.abc import Iterable

from authlib.jose import JoseError, JsonWebToken
from loguru import logger

from src.session_sharing.core.errors import VerificationFailure
from src.session_sharing.core.models.sharing import Claims
from src.session_sharing.core.services.jwt.jwt_utils import preview_jwt

DEFAULT_ALGORITHMS = ("HS256", "HS384", "HS512")


class TokenVerifier:
    """Verify HMAC-signed tokens against a shared secret.

    Stateless apart from the algorithm allowlist and clock skew, so a single
    instance is shared by all concurrent requests.
    """

    def __init__(
        self,
        allowed_algorithms: Iterable[str] = DEFAULT_ALGORITHMS,
        clock_skew: int = 60,
    ):
        self._allowed = tuple(allowed_algorithms)
        self._clock_skew = clock_skew
        self._jwt = JsonWebToken(list(self._allowed))

    def verify(self, token: str, secret: str) -> Claims:
        """Return the decoded claims of ``token`` or raise :class:`VerificationFailure`."""
        if not secret:
            # Never verify against an empty key
            raise VerificationFailure("Signing secret not configured")

        pv = preview_jwt(token)
        if pv.alg not in self._allowed:
            raise VerificationFailure(f"Disallowed JWT algorithm: {pv.alg}")

        try:
            claims = self._jwt.decode(token, secret)
            claims.validate(leeway=self._clock_skew)
        except (JoseError, ValueError) as exc:
            raise VerificationFailure(f"JWT error: {exc}") from exc

        now = int(time.time())
        for k, check in (
            ("exp", lambda v: now > int(v) + self._clock_skew),
            ("nbf", lambda v: now < int(v) - self._clock_skew),
        ):
            v = claims.get(k)
            if v is None:
                continue
            try:
                invalid = check(v)
            except (TypeError, ValueError) as exc:
                raise VerificationFailure(f"Invalid {k} claim") from exc
            if invalid:
                raise VerificationFailure(f"Invalid {k} with skew")

        logger.debug("Shared token verified with {}", pv.alg)
        return dict(claims)

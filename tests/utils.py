import base64
import json
import time
from typing import Any

from authlib.jose import jwt


def make_token(claims: dict[str, Any], secret: str, alg: str = "HS256") -> str:
    """Sign ``claims`` the way the parent site does."""
    return jwt.encode({"alg": alg, "typ": "JWT"}, claims, secret).decode("ascii")


def unsigned_token(claims: dict[str, Any], alg: str = "none") -> str:
    """Build a compact token with an arbitrary header and an empty signature."""

    def seg(obj: dict[str, Any]) -> str:
        raw = json.dumps(obj).encode("utf-8")
        return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")

    return f"{seg({'alg': alg, 'typ': 'JWT'})}.{seg(claims)}.c2ln"


def identity_claims(**overrides: Any) -> dict[str, Any]:
    claims: dict[str, Any] = {
        "id": "ext-42",
        "username": "alice",
        "email": "alice@example.com",
        "iat": int(time.time()),
    }
    claims.update(overrides)
    return claims

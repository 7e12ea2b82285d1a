import base64
import json
from dataclasses import dataclass
from typing import Any, Final

from src.session_sharing.core.errors import VerificationFailure

# ---------------- tunables ----------------
MAX_JWT_CHARS: Final = 8192
MAX_HEADER_BYTES: Final = 8 * 1024
MAX_PAYLOAD_BYTES: Final = 64 * 1024
_ALLOWED: Final = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_."
)  # no '='


# --------------- one-pass prefilter ---------------
def _prefilter_compact_jwt(token: str) -> tuple[str, str, str]:
    if not token or len(token) > MAX_JWT_CHARS:
        raise VerificationFailure("Invalid JWT size")
    first = second = -1
    for i, ch in enumerate(token):
        if ch not in _ALLOWED:
            raise VerificationFailure("Invalid JWT characters")
        if ch == ".":
            if first < 0:
                first = i
            elif second < 0:
                second = i
            else:  # third dot
                raise VerificationFailure("Invalid JWT format")
    # require exactly two dots and non-empty segments
    if first <= 0 or second - first <= 1 or second >= len(token) - 1:
        raise VerificationFailure("Invalid JWT format")
    return token[:first], token[first + 1 : second], token[second + 1 :]


def _b64url_decode_unpadded(seg: str, what: str, max_bytes: int) -> bytes:
    pad = (-len(seg)) % 4
    try:
        raw = base64.urlsafe_b64decode((seg + "=" * pad).encode("ascii"))
    except ValueError as e:
        raise VerificationFailure(f"Invalid base64url in {what}") from e
    if len(raw) > max_bytes:
        raise VerificationFailure(f"{what} too large")
    return raw


def _decode_json_object(raw: bytes, what: str) -> dict[str, Any]:
    try:
        obj = json.loads(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise VerificationFailure(f"Non-UTF8 {what}") from e
    except json.JSONDecodeError as e:
        raise VerificationFailure(f"Invalid JSON in {what}") from e
    if not isinstance(obj, dict):
        raise VerificationFailure(f"{what} must be a JSON object")
    return obj


@dataclass(frozen=True)
class JwtPreview:
    header: dict[str, Any]
    claims: dict[str, Any]
    alg: str | None


def preview_jwt(token: str) -> JwtPreview:
    """Split and decode header+payload exactly once, without verifying anything."""
    h_seg, p_seg, _ = _prefilter_compact_jwt(token)
    header = _decode_json_object(
        _b64url_decode_unpadded(h_seg, "JWT header", MAX_HEADER_BYTES), "JWT header"
    )
    claims = _decode_json_object(
        _b64url_decode_unpadded(p_seg, "JWT payload", MAX_PAYLOAD_BYTES), "JWT payload"
    )
    return JwtPreview(header=header, claims=claims, alg=header.get("alg"))

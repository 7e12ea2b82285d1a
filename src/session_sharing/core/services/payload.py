"""Payload shape validation and identity extraction."""

from collections.abc import Mapping
from typing import Any

from src.session_sharing.core.errors import InvalidPayloadError
from src.session_sharing.core.models.sharing import Claims, ResolvedIdentity
from src.session_sharing.runtime.config.config_data import PayloadFieldMapping

REQUIRED_FIELDS = ("id", "username")


def is_present(value: Any) -> bool:
    """A claim value counts as present only when it is a non-empty string."""
    return isinstance(value, str) and len(value) > 0


def _scope(claims: Mapping[str, Any], mapping: PayloadFieldMapping) -> Mapping[str, Any]:
    if not mapping.parent:
        return claims
    nested = claims.get(mapping.parent)
    if not isinstance(nested, Mapping):
        raise InvalidPayloadError(f"Payload container '{mapping.parent}' missing")
    return nested


def validate_payload(claims: Claims, mapping: PayloadFieldMapping) -> Mapping[str, Any]:
    """Check that the required identity fields are present.

    Returns the claims scope the identity fields live in: the ``parent``
    container when one is configured, the claims themselves otherwise.
    """
    scope = _scope(claims, mapping)
    missing = [
        field for field in REQUIRED_FIELDS if not is_present(scope.get(getattr(mapping, field)))
    ]
    if missing:
        raise InvalidPayloadError(f"Payload missing required fields: {', '.join(missing)}")
    return scope


def extract_identity(
    scope: Mapping[str, Any], mapping: PayloadFieldMapping
) -> ResolvedIdentity:
    """Pull the identity fields out of a validated claims scope."""

    def optional(field: str) -> str | None:
        value = scope.get(getattr(mapping, field))
        return value if is_present(value) else None

    return ResolvedIdentity(
        external_id=scope[mapping.id],
        username=scope[mapping.username],
        email=optional("email"),
        picture=optional("picture"),
    )

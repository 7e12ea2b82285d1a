"""Immutable value objects used by the session sharing pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from src.session_sharing.core.errors import ConfigurationError
from src.session_sharing.runtime.config.config_data import (
    AppConfig,
    PayloadFieldMapping,
    SessionSharingConfig,
)

Claims = dict[str, Any]


@dataclass(frozen=True)
class SharingSettings:
    """Snapshot of the session sharing options, swapped as a whole on reload."""

    secret: str
    name: str
    cookie_name: str
    payload: PayloadFieldMapping
    allowed_algorithms: tuple[str, ...]
    clock_skew: int
    asset_blacklist: re.Pattern[str]
    cookie_domain: str | None = None
    guest_redirect: str | None = None

    @classmethod
    def from_config(cls, cfg: SessionSharingConfig, app: AppConfig) -> SharingSettings:
        pattern = cfg.asset_blacklist.replace(
            "{relative_path}", re.escape(app.relative_path.rstrip("/"))
        )
        try:
            asset_blacklist = re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid asset blacklist pattern {pattern!r}: {e}") from e

        return cls(
            secret=cfg.secret,
            name=cfg.name,
            cookie_name=cfg.cookie_name,
            payload=cfg.payload,
            allowed_algorithms=tuple(cfg.allowed_algorithms),
            clock_skew=cfg.clock_skew,
            asset_blacklist=asset_blacklist,
            cookie_domain=cfg.cookie_domain,
            guest_redirect=cfg.guest_redirect,
        )

    @property
    def mapping_key(self) -> str:
        """Storage key of the external id to account id hash."""
        return f"{self.name}:uid"

    def redacted(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "cookie_name": self.cookie_name,
            "cookie_domain": self.cookie_domain,
            "guest_redirect": self.guest_redirect,
            "payload": self.payload.model_dump(),
            "allowed_algorithms": list(self.allowed_algorithms),
            "secret_configured": bool(self.secret),
        }


@dataclass(frozen=True)
class ResolvedIdentity:
    """Identity fields extracted from a validated token payload."""

    external_id: str
    username: str
    email: str | None = None
    picture: str | None = None

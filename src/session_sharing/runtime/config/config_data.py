"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, model_validator

DEFAULT_ASSET_BLACKLIST = (
    r"^{relative_path}/((api|vendor|uploads|language|templates)(/.*)?|.+\.(css|js|tpl|map))$"
)


def _drop_empty(values: Any) -> Any:
    """Drop falsy option values so that field defaults apply instead."""
    if not isinstance(values, dict):
        return values
    return {k: v for k, v in values.items() if v not in (None, "", [], {})}


class PayloadFieldMapping(BaseModel):
    """Claim keys used to look up identity fields inside a token payload."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default="id", validation_alias=AliasChoices("id", "payload:id"))
    email: str = Field(
        default="email", validation_alias=AliasChoices("email", "payload:email")
    )
    username: str = Field(
        default="username",
        validation_alias=AliasChoices("username", "payload:username"),
    )
    picture: str = Field(
        default="picture", validation_alias=AliasChoices("picture", "payload:picture")
    )
    parent: str | None = Field(
        default=None,
        validation_alias=AliasChoices("parent", "payload:parent"),
        description="Optional key under which all payload fields are nested",
    )

    @model_validator(mode="before")
    @classmethod
    def _apply_defaults(cls, values: Any) -> Any:
        return _drop_empty(values)


class SessionSharingConfig(BaseModel):
    """Session sharing options.

    Accepts both the snake_case names and the original camelCase option names
    (``cookieName``, ``payload:id`` ...). Empty values fall back to defaults.
    """

    model_config = ConfigDict(populate_by_name=True)

    secret: str = Field(default="", description="HMAC secret used to verify tokens")
    name: str = Field(
        default="appId", description="Namespace prefix of the external id mapping key"
    )
    cookie_name: str = Field(
        default="token",
        validation_alias=AliasChoices("cookie_name", "cookieName"),
        description="Name of the inbound cookie carrying the token",
    )
    cookie_domain: str | None = Field(
        default=None,
        validation_alias=AliasChoices("cookie_domain", "cookieDomain"),
        description="Domain on which the token cookie is cleared at logout",
    )
    guest_redirect: str | None = Field(
        default=None,
        validation_alias=AliasChoices("guest_redirect", "guestRedirect"),
        description="Redirect template for cookie-less guests, %1 is the original URL",
    )
    payload: PayloadFieldMapping = Field(default_factory=PayloadFieldMapping)
    allowed_algorithms: list[str] = Field(
        default_factory=lambda: ["HS256", "HS384", "HS512"],
        description="JWT algorithms accepted for shared tokens",
    )
    clock_skew: int = Field(default=60, description="Clock skew tolerance in seconds")
    asset_blacklist: str = Field(
        default=DEFAULT_ASSET_BLACKLIST,
        description="Pattern of paths never processed by the session gate",
    )
    admin_uids: list[int] = Field(
        default_factory=list, description="Account ids allowed to use the admin endpoints"
    )

    @model_validator(mode="before")
    @classmethod
    def _collect_payload_options(cls, values: Any) -> Any:
        values = _drop_empty(values)
        if not isinstance(values, dict):
            return values

        # Flat "payload:<field>" keys from the original settings format
        flat = {k: values.pop(k) for k in list(values) if k.startswith("payload:")}
        if flat:
            payload = dict(values.get("payload") or {})
            payload.update(flat)
            values["payload"] = payload
        return values


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=False, description="Enable Redis service")
    url: str = Field(default="", description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    decode_responses: bool = Field(
        default=True, description="Decode Redis responses to strings"
    )
    socket_timeout: float = Field(default=2.0, description="Socket timeout in seconds")

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password:
            if "@" in self.url:
                # URL already has auth info
                return self.url
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./database.db", description="Database connection URL"
    )
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    host: str = Field(default="localhost", description="Application host")
    port: int = Field(default=8000, description="Application port")
    url: str | None = Field(
        default=None, description="Public forum URL used to build guest redirects"
    )
    relative_path: str = Field(
        default="", description="Path prefix the forum is mounted under"
    )
    session_cookie_name: str = Field(
        default="forum_session", description="Name of the local session cookie"
    )
    session_max_age: int = Field(
        default=1209600, description="Session maximum age in seconds"
    )
    secure_cookies: bool = Field(default=False, description="Mark cookies as secure")

    @property
    def base_url(self) -> str:
        """Public URL, falling back to host and port."""
        if self.url:
            return self.url.rstrip("/")
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    session_sharing: SessionSharingConfig = Field(
        default_factory=SessionSharingConfig,
        description="Session sharing configuration",
    )

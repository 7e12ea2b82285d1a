"""Error types raised by the session sharing pipeline.

Verification and payload errors are expected on the request path and are
absorbed by the session gate. Storage and account creation errors are
unexpected and carry the underlying exception as ``__cause__``.
"""

from __future__ import annotations


class SessionSharingError(Exception):
    """Base class for all session sharing failures."""

    code = "session-sharing-error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class VerificationFailure(SessionSharingError):
    """Token is malformed, expired, signed with another secret or uses a disallowed algorithm."""

    code = "token-invalid"


class InvalidPayloadError(SessionSharingError):
    """Token verified but the required payload fields are missing or empty."""

    code = "payload-invalid"


class StorageError(SessionSharingError):
    """Lookup or write against the mapping storage or the account index failed."""

    code = "storage-error"


class AccountCreationError(SessionSharingError):
    """The account subsystem could not create a new account."""

    code = "account-creation-failed"


class ConfigurationError(SessionSharingError):
    """Session sharing cannot run with the current configuration."""

    code = "configuration-invalid"

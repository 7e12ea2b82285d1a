"""Session and pipeline value models."""

from .session import UserSession
from .sharing import Claims, ResolvedIdentity, SharingSettings

__all__ = ["Claims", "ResolvedIdentity", "SharingSettings", "UserSession"]

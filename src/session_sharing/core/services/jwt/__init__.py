"""JWT service package."""

from .jwt_utils import JwtPreview, preview_jwt
from .jwt_verify import TokenVerifier

__all__ = ["JwtPreview", "TokenVerifier", "preview_jwt"]

"""Public auth exports for portalsync."""

from __future__ import annotations

from .auth_info import DEFAULT_SCOPES, AuthInfo
from .oauth_client import OAuthClient
from .token_manager import TokenManager

__all__ = ["AuthInfo", "DEFAULT_SCOPES", "OAuthClient", "TokenManager"]

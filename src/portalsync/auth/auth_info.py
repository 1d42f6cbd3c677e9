"""OAuth client configuration for portalsync."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

DEFAULT_SCOPES: tuple[str, ...] = (
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/userinfo.email",
    "openid",
)

TOKEN_URI: str = "https://oauth2.googleapis.com/token"
AUTH_URI: str = "https://accounts.google.com/o/oauth2/auth"


@dataclass(slots=True, frozen=True)
class AuthInfo:
    """
    OAuth web-client configuration for the single connected Drive account.

    Only the client identity lives here; tokens are kept in the metadata
    store and handled by TokenManager.
    """

    client_id: str
    client_secret: str
    redirect_uri: str
    scopes: tuple[str, ...] = field(default=DEFAULT_SCOPES)

    def __post_init__(self) -> None:
        for key in ("client_id", "client_secret", "redirect_uri"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"AuthInfo.{key} must be a non-empty string")

        if not self.scopes or not all(isinstance(s, str) and s.strip() for s in self.scopes):
            raise ValueError("AuthInfo.scopes must be a non-empty sequence of strings")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> AuthInfo:
        """
        Build from environment variables.

        Reads PORTALSYNC_GOOGLE_CLIENT_ID, PORTALSYNC_GOOGLE_CLIENT_SECRET and
        PORTALSYNC_GOOGLE_REDIRECT_URI.
        """
        env = os.environ if environ is None else environ
        return cls(
            client_id=env.get("PORTALSYNC_GOOGLE_CLIENT_ID", ""),
            client_secret=env.get("PORTALSYNC_GOOGLE_CLIENT_SECRET", ""),
            redirect_uri=env.get("PORTALSYNC_GOOGLE_REDIRECT_URI", ""),
        )

    def client_config(self) -> dict[str, Any]:
        """Client config in the shape google_auth_oauthlib.flow.Flow expects."""
        return {
            "web": {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }

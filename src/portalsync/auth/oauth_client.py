"""OAuth client utilities for portalsync."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from portalsync.errors import AuthError, AuthRefreshFailedError, InvalidArgumentError
from portalsync.models import TokenGrant
from portalsync.util.time import as_utc, now_utc

from .auth_info import TOKEN_URI, AuthInfo

USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"

# Google access tokens live one hour; used when the response omits expiry.
_DEFAULT_TOKEN_LIFETIME = timedelta(hours=1)


class OAuthClient:
    """
    Talk to Google's OAuth endpoints for the web-server flow.

    Performs no persistence; TokenManager decides what gets stored.
    """

    def __init__(self, auth_info: AuthInfo) -> None:
        self._auth_info = auth_info

    def authorization_url(self, state: Optional[str] = None) -> tuple[str, str]:
        """
        Return (consent_url, state) for an offline-access grant.

        prompt=consent makes Google issue a refresh token on every connect.
        """
        flow = self._build_flow()
        kwargs = {
            "access_type": "offline",
            "prompt": "consent",
        }
        if state is not None:
            kwargs["state"] = state
        try:
            url, out_state = flow.authorization_url(**kwargs)
        except Exception as exc:
            raise AuthError("Failed to build authorization URL", cause=exc) from exc
        return url, out_state

    def exchange_code(self, code: str) -> TokenGrant:
        """
        Exchange an authorization code for tokens and look up the account email.

        Raises:
            InvalidArgumentError: if code is empty.
            AuthError: if the exchange fails or no refresh token is granted.
        """
        if not isinstance(code, str) or not code.strip():
            raise InvalidArgumentError("authorization code must be a non-empty string")

        flow = self._build_flow()
        try:
            flow.fetch_token(code=code)
            creds = flow.credentials
            resp = flow.authorized_session().get(USERINFO_URL)
            email = resp.json().get("email") if resp.ok else None
        except Exception as exc:
            raise AuthError("OAuth code exchange failed", cause=exc) from exc

        if not creds.refresh_token:
            raise AuthError(
                "Google did not return a refresh token",
                details={"hint": "Revoke the app grant and connect again"},
            )

        return TokenGrant(
            access_token=creds.token,
            refresh_token=creds.refresh_token,
            expires_at=_expiry_of(creds),
            email=email,
        )

    def refresh(self, refresh_token: str) -> TokenGrant:
        """
        Obtain a new access token with a stored refresh token.

        Raises:
            AuthRefreshFailedError: on any transport or grant failure.
        """
        try:
            from google.auth.transport.requests import Request
            from google.oauth2.credentials import Credentials
        except Exception as exc:  # pragma: no cover
            raise AuthRefreshFailedError(
                "Google auth libraries are not available",
                details={"hint": "Install google-auth and requests"},
                cause=exc,
            ) from exc

        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=self._auth_info.client_id,
            client_secret=self._auth_info.client_secret,
            scopes=list(self._auth_info.scopes),
        )
        try:
            creds.refresh(Request())
        except Exception as exc:
            raise AuthRefreshFailedError("Failed to refresh OAuth credentials", cause=exc) from exc

        return TokenGrant(
            access_token=creds.token,
            refresh_token=creds.refresh_token if creds.refresh_token != refresh_token else None,
            expires_at=_expiry_of(creds),
        )

    def _build_flow(self):
        try:
            from google_auth_oauthlib.flow import Flow
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-auth-oauthlib is not available",
                details={"hint": "Install google-auth-oauthlib"},
                cause=exc,
            ) from exc

        # The code exchange happens in a later request with a fresh Flow, so
        # PKCE verifiers generated here would be lost.
        return Flow.from_client_config(
            self._auth_info.client_config(),
            scopes=list(self._auth_info.scopes),
            redirect_uri=self._auth_info.redirect_uri,
            autogenerate_code_verifier=False,
        )


def _expiry_of(creds) -> datetime:
    # google-auth keeps expiry as a naive UTC datetime.
    expiry = getattr(creds, "expiry", None)
    if expiry is None:
        return now_utc() + _DEFAULT_TOKEN_LIFETIME
    return as_utc(expiry)

"""Token lifecycle: hand out valid access tokens, refresh before expiry."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from portalsync.errors import AuthError, AuthRefreshFailedError, NotConnectedError
from portalsync.models import ConnectionStatus
from portalsync.store import CredentialRecord, MetadataStore
from portalsync.util.time import now_utc

from .oauth_client import OAuthClient

logger = logging.getLogger(__name__)


class TokenManager:
    """
    Owns the single stored Drive credential.

    Notes:
        - A refresh is committed to the store only after it succeeds; a failed
          refresh leaves the previous token and expiry untouched.
        - Refreshes are serialised per manager. Concurrent refreshes from
          other processes are harmless: each writes a self-consistent pair.
    """

    def __init__(
        self,
        store: MetadataStore,
        oauth_client: OAuthClient,
        *,
        refresh_margin: timedelta = timedelta(minutes=5),
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._refresh_lock = threading.Lock()

    def get_valid_token(self) -> str:
        """
        Return an access token that is not about to expire.

        Raises:
            NotConnectedError: if no credential is stored.
            AuthRefreshFailedError: if a needed refresh is rejected.
        """
        record = self._require_record()
        if not self._needs_refresh(record):
            return record.access_token

        with self._refresh_lock:
            # Another thread may have refreshed while we waited.
            record = self._require_record()
            if not self._needs_refresh(record):
                return record.access_token
            return self._refresh(record)

    def is_connected(self) -> bool:
        return self._store.get_credential() is not None

    def status(self) -> ConnectionStatus:
        record = self._store.get_credential()
        if record is None:
            return ConnectionStatus(connected=False)
        return ConnectionStatus(connected=True, email=record.email)

    def authorization_url(self, state: Optional[str] = None) -> tuple[str, str]:
        return self._oauth.authorization_url(state)

    def connect(self, code: str) -> ConnectionStatus:
        """Complete the authorization handshake and store (or replace) the credential."""
        grant = self._oauth.exchange_code(code)
        if not grant.refresh_token:
            raise AuthError("Authorization did not yield a refresh token")

        self._store.upsert_credential(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token,
            expires_at=grant.expires_at,
            email=grant.email,
        )
        logger.info("Connected Drive account %s", grant.email)
        return ConnectionStatus(connected=True, email=grant.email)

    def disconnect(self) -> None:
        """Forget the stored credential. Already disconnected is fine."""
        if self._store.delete_credential():
            logger.info("Disconnected Drive account")

    # ----------------------------
    # Internals
    # ----------------------------
    def _require_record(self) -> CredentialRecord:
        record = self._store.get_credential()
        if record is None:
            raise NotConnectedError("Google Drive not connected")
        return record

    def _needs_refresh(self, record: CredentialRecord) -> bool:
        return record.expires_at - self._clock() < self._refresh_margin

    def _refresh(self, record: CredentialRecord) -> str:
        try:
            grant = self._oauth.refresh(record.refresh_token)
        except AuthRefreshFailedError:
            logger.warning("Drive token refresh rejected")
            raise
        except Exception as exc:
            logger.warning("Drive token refresh failed: %s", exc)
            raise AuthRefreshFailedError("Failed to refresh OAuth credentials", cause=exc) from exc

        updated = self._store.update_access_token(
            grant.access_token,
            grant.expires_at,
            refresh_token=grant.refresh_token,
        )
        if updated is None:
            raise NotConnectedError("Google Drive was disconnected during refresh")

        logger.debug("Refreshed Drive access token, expires %s", grant.expires_at)
        return grant.access_token

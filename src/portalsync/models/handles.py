"""Value objects handed back to callers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from portalsync.controller.download_stream import DownloadStream
    from portalsync.store.tables import FileEntity


@dataclass(slots=True, frozen=True)
class Caller:
    """The identity a request is made on behalf of."""

    user_id: str
    email: Optional[str] = None
    is_admin: bool = False


@dataclass(slots=True, frozen=True)
class UploadHandle:
    """
    One-time upload authorization.

    The caller PUTs bytes to session_uri directly; no server state is kept.
    """

    session_uri: str
    container_id: str
    file_name: str
    content_type: str
    scope_id: Optional[str] = None


@dataclass(slots=True, frozen=True)
class TokenGrant:
    """Token material returned by the OAuth endpoints."""

    access_token: str
    expires_at: datetime
    refresh_token: Optional[str] = None
    email: Optional[str] = None


@dataclass(slots=True, frozen=True)
class ConnectionStatus:
    connected: bool
    email: Optional[str] = None


@dataclass(slots=True)
class VersionGroup:
    """One row of the grouped file listing: the newest member and chain length."""

    latest: FileEntity
    version_count: int


@dataclass(slots=True)
class DownloadResponse:
    """A download ready to be passed through to the client."""

    stream: DownloadStream
    content_type: str
    size: Optional[int]
    disposition: str
    file_name: str

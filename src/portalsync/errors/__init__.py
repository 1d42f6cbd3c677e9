"""Public error exports for portalsync."""

from __future__ import annotations

from .exceptions import (
    AccessDeniedError,
    ApiError,
    AuthError,
    AuthRefreshFailedError,
    ConflictError,
    EntityNotFoundError,
    ExportTooLargeError,
    ForbiddenError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    NotConnectedError,
    PortalSyncError,
    QuotaExceededError,
    RateLimitError,
    RemoteNotFoundError,
    ScopeNotSyncableError,
    UploadSessionFailedError,
    map_http_error,
)

__all__ = [
    "PortalSyncError",
    "NotConnectedError",
    "AuthError",
    "AuthRefreshFailedError",
    "InvalidArgumentError",
    "EntityNotFoundError",
    "ForbiddenError",
    "ScopeNotSyncableError",
    "ExportTooLargeError",
    "UploadSessionFailedError",
    "AccessDeniedError",
    "RemoteNotFoundError",
    "ConflictError",
    "RateLimitError",
    "QuotaExceededError",
    "NetworkError",
    "ApiError",
    "HttpErrorInfo",
    "map_http_error",
]

"""Exception hierarchy and HTTP error mapping for portalsync."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


class PortalSyncError(Exception):
    """
    Base exception for portalsync.

    Attributes:
        details: Optional structured information (e.g., HTTP status, operation).
        cause: Optional original exception that triggered this error.
    """

    def __init__(
        self,
        message: str,
        *,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.details = details or {}
        self.cause = cause

    @property
    def status_code(self) -> Optional[int]:
        """HTTP status of the failed remote call, when there was one."""
        value = self.details.get("status_code")
        return value if isinstance(value, int) else None


# ----------------------------
# Credential lifecycle
# ----------------------------
class NotConnectedError(PortalSyncError):
    """Raised when no Drive credential record exists."""


class AuthError(PortalSyncError):
    """Raised when the backend rejects the access token (HTTP 401) or the code exchange fails."""


class AuthRefreshFailedError(AuthError):
    """Raised when the refresh round-trip is rejected. Fatal until re-authorization."""


# ----------------------------
# Local / caller-facing
# ----------------------------
class InvalidArgumentError(PortalSyncError):
    """Raised when request arguments are invalid (HTTP 400, etc.)."""


class EntityNotFoundError(PortalSyncError):
    """Raised when a local record (file, project) does not exist."""


class ForbiddenError(PortalSyncError):
    """Raised when the authorization oracle rejects the caller for a scope."""


class ScopeNotSyncableError(PortalSyncError):
    """Raised when a scope has no remote container provisioned."""


class ExportTooLargeError(PortalSyncError):
    """Raised when a zip export exceeds the configured file-count or size ceiling."""


# ----------------------------
# Remote backend
# ----------------------------
class UploadSessionFailedError(PortalSyncError):
    """Raised when the backend refuses to open a resumable upload session."""


class AccessDeniedError(PortalSyncError):
    """Raised when access is denied (HTTP 403 non-quota)."""


class RemoteNotFoundError(PortalSyncError):
    """Raised when a Drive object or container is not found (HTTP 404)."""


class ConflictError(PortalSyncError):
    """Raised when a conflict occurs (HTTP 409/412)."""


class RateLimitError(PortalSyncError):
    """Raised when rate-limited (HTTP 429)."""


class QuotaExceededError(PortalSyncError):
    """Raised when quota is exceeded (HTTP 403 with quota-related reason)."""


class NetworkError(PortalSyncError):
    """Raised when network/timeout issues prevent the request."""


class ApiError(PortalSyncError):
    """Raised for unclassified API errors (5xx, unknown 4xx, etc.)."""


@dataclass(frozen=True)
class HttpErrorInfo:
    """Lightweight HTTP error information for mapping to portalsync exceptions."""

    status_code: int
    reason: str | None = None
    message: str | None = None
    operation: str | None = None
    details: dict[str, Any] | None = None


_QUOTA_REASON_KEYWORDS: tuple[str, ...] = (
    "quota",
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "dailyLimitExceeded",
    "usageLimits",
    "storageQuotaExceeded",
)


def _is_quota_reason(reason: str | None) -> bool:
    if not reason:
        return False
    return any(key.lower() in reason.lower() for key in _QUOTA_REASON_KEYWORDS)


def map_http_error(
    info: HttpErrorInfo,
    *,
    cause: Optional[BaseException] = None,
) -> PortalSyncError:
    """
    Map an HTTP error to a portalsync exception.

    Policy:
        - 400 -> InvalidArgumentError
        - 401 -> AuthError
        - 403 -> AccessDeniedError (default), but QuotaExceededError if quota-related
        - 404 -> RemoteNotFoundError
        - 409/412 -> ConflictError
        - 429 -> RateLimitError
        - otherwise -> ApiError

    The returned error's details always carry ``status_code`` and
    ``operation`` so callers can choose a retry policy.
    """
    details: dict[str, Any] = {
        "status_code": info.status_code,
        "reason": info.reason,
        "operation": info.operation,
    }
    if info.details:
        details.update(info.details)

    message = info.message or f"HTTP error {info.status_code}"
    if info.operation:
        message = f"{info.operation}: {message}"

    if info.status_code == 400:
        return InvalidArgumentError(message, details=details, cause=cause)
    if info.status_code == 401:
        return AuthError(message, details=details, cause=cause)
    if info.status_code == 403:
        if _is_quota_reason(info.reason):
            return QuotaExceededError(message, details=details, cause=cause)
        return AccessDeniedError(message, details=details, cause=cause)
    if info.status_code == 404:
        return RemoteNotFoundError(message, details=details, cause=cause)
    if info.status_code in (409, 412):
        return ConflictError(message, details=details, cause=cause)
    if info.status_code == 429:
        return RateLimitError(message, details=details, cause=cause)

    return ApiError(message, details=details, cause=cause)

"""portalsync public API."""

from __future__ import annotations

from portalsync.auth import AuthInfo, OAuthClient, TokenManager
from portalsync.broker import UploadBroker
from portalsync.config import PortalSettings
from portalsync.controller import DownloadStream, DriveStorageClient
from portalsync.downloads import ZipExport
from portalsync.errors import (
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
from portalsync.interfaces import ActivitySink, Authorizer, StoreActivitySink
from portalsync.ledger import VersionLedger, latest_per_group
from portalsync.manager import PortalSyncManager
from portalsync.models import (
    Caller,
    ConnectionStatus,
    DownloadResponse,
    OperationResult,
    RemoteFile,
    SyncResult,
    UploadHandle,
    VersionGroup,
)
from portalsync.plan import Action, ReconcileOperation, ReconcilePlan, build_reconcile_plan
from portalsync.store import FileEntity, MetadataStore, Project
from portalsync.sync import Reconciler

__all__ = [
    # High-level
    "PortalSyncManager",
    "PortalSettings",
    # Components
    "AuthInfo",
    "OAuthClient",
    "TokenManager",
    "DriveStorageClient",
    "DownloadStream",
    "MetadataStore",
    "VersionLedger",
    "latest_per_group",
    "UploadBroker",
    "Reconciler",
    # Interfaces
    "Authorizer",
    "ActivitySink",
    "StoreActivitySink",
    # Plan / Models
    "Action",
    "ReconcileOperation",
    "ReconcilePlan",
    "build_reconcile_plan",
    "FileEntity",
    "Project",
    "RemoteFile",
    "Caller",
    "UploadHandle",
    "ConnectionStatus",
    "VersionGroup",
    "DownloadResponse",
    "ZipExport",
    "OperationResult",
    "SyncResult",
    # Errors
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

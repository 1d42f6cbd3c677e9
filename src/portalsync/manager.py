"""PortalSyncManager: the caller-facing entry point for uploads, versions and sync."""

from __future__ import annotations

import logging
from typing import Optional

from portalsync.auth import AuthInfo, OAuthClient, TokenManager
from portalsync.broker import UploadBroker
from portalsync.config import PortalSettings
from portalsync.controller import DriveStorageClient
from portalsync.downloads import ZipExport, build_download_response, build_zip_export
from portalsync.errors import EntityNotFoundError, ForbiddenError, PortalSyncError
from portalsync.interfaces import (
    ActivitySink,
    AdminOnlyAuthorizer,
    Authorizer,
    StoreActivitySink,
)
from portalsync.ledger import VersionLedger, latest_per_group
from portalsync.models import (
    Caller,
    ConnectionStatus,
    DownloadResponse,
    RemoteFile,
    SyncResult,
    UploadHandle,
    VersionGroup,
)
from portalsync.store import FileEntity, MetadataStore, Project
from portalsync.sync import Reconciler

logger = logging.getLogger(__name__)

FILE_DELETED = "FILE_DELETED"


class PortalSyncManager:
    """High-level facade: upload brokering, version ledger, reconciliation."""

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        database_url: str = "sqlite://",
        settings: Optional[PortalSettings] = None,
        authorizer: Optional[Authorizer] = None,
        activities: Optional[ActivitySink] = None,
        supports_all_drives: bool = True,
    ) -> None:
        settings = settings or PortalSettings()
        store = MetadataStore(database_url)
        store.create_all()

        tokens = TokenManager(
            store,
            OAuthClient(auth_info),
            refresh_margin=settings.refresh_margin,
        )
        storage = DriveStorageClient(
            tokens,
            supports_all_drives=supports_all_drives,
            chunk_size=settings.download_chunk_size,
        )
        self._init(
            store,
            tokens,
            storage,
            settings=settings,
            authorizer=authorizer,
            activities=activities,
        )

    @classmethod
    def from_components(
        cls,
        store: MetadataStore,
        tokens: TokenManager,
        storage: DriveStorageClient,
        *,
        settings: Optional[PortalSettings] = None,
        authorizer: Optional[Authorizer] = None,
        activities: Optional[ActivitySink] = None,
    ) -> PortalSyncManager:
        """Create manager with injected collaborators (useful for tests)."""
        obj = cls.__new__(cls)
        obj._init(
            store,
            tokens,
            storage,
            settings=settings or PortalSettings(),
            authorizer=authorizer,
            activities=activities,
        )
        return obj

    def _init(
        self,
        store: MetadataStore,
        tokens: TokenManager,
        storage: DriveStorageClient,
        *,
        settings: PortalSettings,
        authorizer: Optional[Authorizer],
        activities: Optional[ActivitySink],
    ) -> None:
        self._store = store
        self._tokens = tokens
        self._storage = storage
        self._settings = settings
        self._authorizer = authorizer or AdminOnlyAuthorizer()
        self._activities = activities or StoreActivitySink(store)

        self._ledger = VersionLedger(store)
        self._broker = UploadBroker(store, storage, self._ledger, self._activities, settings)
        self._reconciler = Reconciler(
            store,
            storage,
            self._ledger,
            tokens,
            debounce=settings.sync_debounce,
        )

    @property
    def store(self) -> MetadataStore:
        return self._store

    @property
    def ledger(self) -> VersionLedger:
        return self._ledger

    # ----------------------------
    # Connection
    # ----------------------------
    def authorization_url(self, state: Optional[str] = None) -> tuple[str, str]:
        return self._tokens.authorization_url(state)

    def connect(self, code: str) -> ConnectionStatus:
        return self._tokens.connect(code)

    def disconnect(self) -> None:
        self._tokens.disconnect()

    def connection_status(self) -> ConnectionStatus:
        return self._tokens.status()

    # ----------------------------
    # Uploads
    # ----------------------------
    def provision_scope(self, scope_id: str) -> Project:
        return self._broker.provision_scope(scope_id)

    def request_upload_handle(
        self,
        scope_id: Optional[str],
        file_name: str,
        content_type: Optional[str],
        origin: Optional[str] = None,
    ) -> UploadHandle:
        return self._broker.request_upload_handle(scope_id, file_name, content_type, origin)

    def confirm_upload(
        self,
        scope_id: Optional[str],
        remote_id: Optional[str],
        file_name: str,
        content_type: Optional[str],
        size: Optional[int],
        uploader_id: Optional[str],
        *,
        category: Optional[str] = None,
        display_name: Optional[str] = None,
        target_group_id: Optional[str] = None,
    ) -> FileEntity:
        return self._broker.confirm_upload(
            scope_id,
            remote_id,
            file_name,
            content_type,
            size,
            uploader_id,
            category=category,
            display_name=display_name,
            target_group_id=target_group_id,
        )

    def upload_asset(
        self,
        scope_id: str,
        name: str,
        content_type: Optional[str],
        data: bytes,
    ) -> RemoteFile:
        return self._broker.upload_asset(scope_id, name, content_type, data)

    # ----------------------------
    # Ledger views
    # ----------------------------
    def list_files(self, scope_id: Optional[str], caller: Caller) -> list[VersionGroup]:
        """Newest member of every chain in the scope, with chain lengths."""
        if scope_id is not None:
            self._authorize(self._require_project(scope_id), caller)
        return latest_per_group(self._ledger.files_for_scope(scope_id))

    def list_versions(self, file_id: str, caller: Caller) -> list[FileEntity]:
        """
        All versions of the chain file_id belongs to, highest first.

        Raises:
            EntityNotFoundError: if the file is unknown or has no version history.
            ForbiddenError: if the caller may not see the owning project.
        """
        entity = self._ledger.get(file_id)
        if not entity.group_id:
            raise EntityNotFoundError("No version history", details={"file_id": file_id})
        self._authorize_file(entity, caller)
        return self._ledger.list_versions(entity.group_id)

    # ----------------------------
    # Downloads
    # ----------------------------
    def download(self, file_id: str, caller: Caller, inline: bool = False) -> DownloadResponse:
        """Open a pass-through download. The caller must close the stream."""
        entity = self._ledger.get(file_id)
        self._authorize_file(entity, caller)
        stream = self._storage.download(entity.remote_id)
        return build_download_response(entity, stream, inline=inline)

    def download_all(self, scope_id: str, caller: Caller) -> ZipExport:
        """Zip the current version of every file in the project."""
        project = self._require_project(scope_id)
        self._authorize(project, caller)
        return build_zip_export(
            project.name,
            self._ledger.current_files(scope_id),
            self._storage,
            self._settings,
        )

    # ----------------------------
    # Mutations
    # ----------------------------
    def delete_file(self, file_id: str, caller: Caller) -> None:
        """
        Admin only. Remove the remote object (best effort) and the ledger entry.

        Raises:
            ForbiddenError: if caller is not an admin.
            EntityNotFoundError: if the file is unknown.
        """
        if not caller.is_admin:
            raise ForbiddenError("Only admins may delete files")

        entity = self._ledger.get(file_id)
        try:
            self._storage.delete(entity.remote_id)
        except PortalSyncError as exc:
            logger.warning("Could not delete Drive object %s: %s", entity.remote_id, exc)

        self._ledger.remove(file_id)
        self._activities.record(
            FILE_DELETED,
            f'Deleted file "{entity.original_name}"',
            caller.user_id,
        )

    def trigger_sync(self, scope_id: str, force: bool = False) -> SyncResult:
        return self._reconciler.trigger_sync(scope_id, force=force)

    # ----------------------------
    # Internals
    # ----------------------------
    def _require_project(self, scope_id: str) -> Project:
        project = self._store.get_project(scope_id)
        if project is None:
            raise EntityNotFoundError("Project not found", details={"scope_id": scope_id})
        return project

    def _authorize_file(self, entity: FileEntity, caller: Caller) -> None:
        if entity.project_id is None:
            return
        self._authorize(self._require_project(entity.project_id), caller)

    def _authorize(self, project: Project, caller: Caller) -> None:
        if caller.is_admin:
            return
        if not self._authorizer.is_authorized(caller, project.access_rules or []):
            raise ForbiddenError("Forbidden", details={"scope_id": project.id})

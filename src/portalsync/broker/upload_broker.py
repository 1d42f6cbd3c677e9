"""Upload broker: hand out resumable sessions and record completed uploads."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from portalsync.config import PortalSettings
from portalsync.errors import EntityNotFoundError, InvalidArgumentError, ScopeNotSyncableError
from portalsync.interfaces import ActivitySink
from portalsync.ledger import VersionLedger
from portalsync.models import RemoteFile, UploadHandle
from portalsync.store import FileEntity, MetadataStore, Project
from portalsync.util.mime import normalize_content_type

logger = logging.getLogger(__name__)

FILE_UPLOADED = "FILE_UPLOADED"


class UploadStorage(Protocol):
    def find_or_create_container(self, name: str, parent_id: Optional[str] = None) -> str: ...

    def create_resumable_session(
        self,
        container_id: str,
        name: str,
        content_type: str,
        *,
        origin: Optional[str] = None,
    ) -> str: ...

    def upload_small(
        self,
        container_id: str,
        name: str,
        content_type: str,
        data: bytes,
    ) -> RemoteFile: ...

    def list_container(self, container_id: str) -> list[RemoteFile]: ...


class UploadBroker:
    """
    Two-step upload protocol.

    1. request_upload_handle: place the file and open a session URI. The
       client PUTs the bytes there directly.
    2. confirm_upload: register the finished object in the ledger.

    Nothing is stored between the two steps.
    """

    def __init__(
        self,
        store: MetadataStore,
        storage: UploadStorage,
        ledger: VersionLedger,
        activities: ActivitySink,
        settings: Optional[PortalSettings] = None,
    ) -> None:
        self._store = store
        self._storage = storage
        self._ledger = ledger
        self._activities = activities
        self._settings = settings or PortalSettings()

    def request_upload_handle(
        self,
        scope_id: Optional[str],
        file_name: str,
        content_type: Optional[str],
        origin: Optional[str] = None,
    ) -> UploadHandle:
        """
        Raises:
            InvalidArgumentError: if file_name is empty.
            EntityNotFoundError: if scope_id names no project.
            ScopeNotSyncableError: if the project has no Drive folder yet.
        """
        if not isinstance(file_name, str) or not file_name.strip():
            raise InvalidArgumentError("file_name must be a non-empty string")

        ctype = normalize_content_type(content_type)
        container_id = self._container_for(scope_id)
        session_uri = self._storage.create_resumable_session(
            container_id,
            file_name,
            ctype,
            origin=origin,
        )
        logger.debug("Opened upload session for %r in %s", file_name, container_id)
        return UploadHandle(
            session_uri=session_uri,
            container_id=container_id,
            file_name=file_name,
            content_type=ctype,
            scope_id=scope_id,
        )

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
        """
        Register an uploaded object and record a FILE_UPLOADED activity.

        A repeated completion for the same (scope, remote_id) returns the
        already registered entity and records nothing. When the client lost
        the remote id, the scope's folder is searched for an unregistered
        object with the same name.

        Raises:
            InvalidArgumentError: bad arguments, or the object cannot be found.
            EntityNotFoundError: if scope_id names no project.
        """
        if not isinstance(file_name, str) or not file_name.strip():
            raise InvalidArgumentError("file_name must be a non-empty string")

        project = self._project_or_none(scope_id)

        if not remote_id:
            found = self._find_unregistered(project, file_name)
            if found is None:
                raise InvalidArgumentError(
                    "Could not find uploaded file in Drive",
                    details={"file_name": file_name},
                )
            remote_id = found.remote_id
            size = size or found.size

        existing = self._ledger.find_by_remote_id(scope_id, remote_id)
        if existing is not None:
            logger.info("Upload %s already confirmed as %s", remote_id, existing.id)
            return existing

        entity = self._ledger.register_upload(
            scope_id,
            file_name,
            remote_id,
            content_type,
            size,
            uploader_id,
            category=category,
            display_name=display_name,
            target_group_id=target_group_id,
        )

        where = f'project "{project.name}"' if project is not None else "general files"
        self._activities.record(
            FILE_UPLOADED,
            f'Uploaded file "{file_name}" to {where}',
            uploader_id,
        )
        return entity

    def provision_scope(self, scope_id: str) -> Project:
        """Find or create root -> project folder -> assets folder and store the ids."""
        project = self._require_project(scope_id)

        root_id = self._storage.find_or_create_container(self._settings.root_folder_name)
        folder_id = project.remote_folder_id or self._storage.find_or_create_container(
            project.name, root_id
        )
        assets_id = project.assets_folder_id or self._storage.find_or_create_container(
            self._settings.assets_folder_name, folder_id
        )

        updated = self._store.set_project_folders(
            scope_id,
            remote_folder_id=folder_id,
            assets_folder_id=assets_id,
        )
        if updated is None:
            raise EntityNotFoundError("Project not found", details={"scope_id": scope_id})
        logger.info("Provisioned Drive folders for project %s", scope_id)
        return updated

    def upload_asset(
        self,
        scope_id: str,
        name: str,
        content_type: Optional[str],
        data: bytes,
    ) -> RemoteFile:
        """Server-side upload of a small file (logo, thumbnail) into the assets folder."""
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("name must be a non-empty string")
        if len(data) > self._settings.small_upload_limit:
            raise InvalidArgumentError(
                "Asset too large for a direct upload",
                details={"size": len(data), "limit": self._settings.small_upload_limit},
            )

        project = self._require_project(scope_id)
        if not project.assets_folder_id:
            project = self.provision_scope(scope_id)

        return self._storage.upload_small(
            project.assets_folder_id,  # type: ignore[arg-type]
            name,
            normalize_content_type(content_type),
            data,
        )

    # ----------------------------
    # Internals
    # ----------------------------
    def _container_for(self, scope_id: Optional[str]) -> str:
        if scope_id is None:
            root_id = self._storage.find_or_create_container(self._settings.root_folder_name)
            return self._storage.find_or_create_container(
                self._settings.general_folder_name, root_id
            )

        project = self._require_project(scope_id)
        if not project.remote_folder_id:
            raise ScopeNotSyncableError(
                "Project has no Drive folder",
                details={"scope_id": scope_id},
            )
        return project.remote_folder_id

    def _require_project(self, scope_id: str) -> Project:
        project = self._store.get_project(scope_id)
        if project is None:
            raise EntityNotFoundError("Project not found", details={"scope_id": scope_id})
        return project

    def _project_or_none(self, scope_id: Optional[str]) -> Optional[Project]:
        if scope_id is None:
            return None
        return self._require_project(scope_id)

    def _find_unregistered(self, project: Optional[Project], file_name: str) -> Optional[RemoteFile]:
        if project is None or not project.remote_folder_id:
            return None

        known = {f.remote_id for f in self._ledger.files_for_scope(project.id)}
        matches = [
            rf for rf in self._storage.list_container(project.remote_folder_id)
            if rf.name == file_name
        ]
        for rf in matches:
            if rf.remote_id not in known:
                return rf
        return matches[0] if matches else None

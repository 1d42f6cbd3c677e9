"""Version chains: assign version numbers and group ids to uploaded files."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from portalsync.errors import EntityNotFoundError, InvalidArgumentError
from portalsync.models import VersionGroup
from portalsync.store import FileEntity, MetadataStore, scope_clause
from portalsync.util.ids import new_group_id
from portalsync.util.locks import KeyedLocks
from portalsync.util.mime import normalize_content_type

logger = logging.getLogger(__name__)

CATEGORIES = ("RENDER", "DRAWING", "OTHER")
DEFAULT_CATEGORY = "OTHER"


class VersionLedger:
    """
    Local record of files and their version chains.

    Notes:
        - Files in one scope whose original_name matches case-insensitively
          form one chain. The chain gets a group_id when its second member
          arrives; a lone file has group_id None.
        - Registration for one (scope, lower(name)) is serialised within this
          process and runs in a single transaction.
    """

    def __init__(self, store: MetadataStore) -> None:
        self._store = store
        self._locks = KeyedLocks()

    def register_upload(
        self,
        scope_id: Optional[str],
        file_name: str,
        remote_id: str,
        content_type: Optional[str],
        size: Optional[int],
        uploader_id: Optional[str],
        *,
        synced_from_drive: bool = False,
        category: Optional[str] = None,
        display_name: Optional[str] = None,
        target_group_id: Optional[str] = None,
    ) -> FileEntity:
        """
        Insert a FileEntity positioned at the head of its version chain.

        If the same remote object is already registered in the scope, the
        existing entity is returned unchanged.

        Raises:
            InvalidArgumentError: on empty name/remote id or unknown category.
        """
        if not isinstance(file_name, str) or not file_name.strip():
            raise InvalidArgumentError("file_name must be a non-empty string")
        if not isinstance(remote_id, str) or not remote_id.strip():
            raise InvalidArgumentError("remote_id must be a non-empty string")
        if category is not None and category not in CATEGORIES:
            raise InvalidArgumentError(
                f"Unknown category: {category}",
                details={"allowed": list(CATEGORIES)},
            )
        if size is not None and size < 0:
            raise InvalidArgumentError("size must not be negative")

        if target_group_id:
            lock_key = ("group", target_group_id)
        else:
            lock_key = (scope_id, file_name.lower())

        with self._locks.hold(lock_key), self._store.session() as s:
            existing = s.scalars(
                select(FileEntity).where(
                    scope_clause(scope_id),
                    FileEntity.remote_id == remote_id,
                )
            ).first()
            if existing is not None:
                logger.debug("Remote object %s already registered as %s", remote_id, existing.id)
                return existing

            chain = self._chain_for(s, scope_id, file_name, target_group_id)

            version = 1
            group_id = None
            if chain:
                head = chain[0]
                version = head.version + 1
                if head.group_id:
                    group_id = head.group_id
                    # Renamed members keep their numbers; never reuse one.
                    top = s.scalar(
                        select(func.max(FileEntity.version)).where(FileEntity.group_id == group_id)
                    )
                    version = max(version, (top or 0) + 1)
                else:
                    group_id = new_group_id()
                    head.group_id = group_id
                for member in chain:
                    member.is_current = False

            entity = FileEntity(
                remote_id=remote_id,
                name=file_name,
                original_name=file_name,
                display_name=display_name or None,
                size=size or 0,
                content_type=normalize_content_type(content_type),
                category=category or DEFAULT_CATEGORY,
                version=version,
                group_id=group_id,
                is_current=True,
                synced_from_drive=synced_from_drive,
                project_id=scope_id,
                uploaded_by_id=uploader_id,
            )
            s.add(entity)
            s.flush()

        logger.info(
            "Registered %r v%d in scope %s (group %s)",
            file_name,
            version,
            scope_id or "general",
            group_id,
        )
        return entity

    def list_versions(self, group_id: str) -> list[FileEntity]:
        """All members of a chain, highest version first."""
        if not group_id:
            return []
        return self._store.list_group(group_id)

    def versions_of(self, file_id: str) -> list[FileEntity]:
        """The chain a file belongs to; a lone file is its own one-entry chain."""
        entity = self.get(file_id)
        if not entity.group_id:
            return [entity]
        return self.list_versions(entity.group_id)

    def files_for_scope(self, scope_id: Optional[str]) -> list[FileEntity]:
        return self._store.list_files(scope_id)

    def current_files(self, scope_id: Optional[str]) -> list[FileEntity]:
        return self._store.list_current_files(scope_id)

    def find_by_remote_id(self, scope_id: Optional[str], remote_id: str) -> Optional[FileEntity]:
        return self._store.find_file_by_remote_id(scope_id, remote_id)

    def get(self, file_id: str) -> FileEntity:
        entity = self._store.get_file(file_id)
        if entity is None:
            raise EntityNotFoundError("File not found", details={"file_id": file_id})
        return entity

    def rename(self, file_id: str, new_name: str) -> FileEntity:
        """Rename in place; the version number does not change."""
        if not isinstance(new_name, str) or not new_name.strip():
            raise InvalidArgumentError("new_name must be a non-empty string")

        with self._store.session() as s:
            entity = s.get(FileEntity, file_id)
            if entity is None:
                raise EntityNotFoundError("File not found", details={"file_id": file_id})
            old_name = entity.original_name
            entity.name = new_name
            entity.original_name = new_name
            s.flush()

        logger.info("Renamed %s: %r -> %r", file_id, old_name, new_name)
        return entity

    def remove(self, file_id: str) -> FileEntity:
        """
        Delete a FileEntity and return the removed row.

        If it was the current version, the highest remaining member of its
        chain becomes current.
        """
        with self._store.session() as s:
            entity = s.get(FileEntity, file_id)
            if entity is None:
                raise EntityNotFoundError("File not found", details={"file_id": file_id})

            s.delete(entity)
            s.flush()

            if entity.is_current and entity.group_id:
                successor = s.scalars(
                    select(FileEntity)
                    .where(FileEntity.group_id == entity.group_id)
                    .order_by(FileEntity.version.desc())
                ).first()
                if successor is not None:
                    successor.is_current = True
                    logger.debug(
                        "Promoted %s (v%d) to current in group %s",
                        successor.id,
                        successor.version,
                        entity.group_id,
                    )

        return entity

    # ----------------------------
    # Internals
    # ----------------------------
    def _chain_for(
        self,
        s: Session,
        scope_id: Optional[str],
        file_name: str,
        target_group_id: Optional[str],
    ) -> list[FileEntity]:
        if target_group_id:
            stmt = (
                select(FileEntity)
                .where(FileEntity.group_id == target_group_id)
                .order_by(FileEntity.version.desc())
            )
        else:
            stmt = (
                select(FileEntity)
                .where(
                    scope_clause(scope_id),
                    func.lower(FileEntity.original_name) == file_name.lower(),
                )
                .order_by(FileEntity.version.desc())
            )
        return list(s.scalars(stmt))


def latest_per_group(files: Iterable[FileEntity]) -> list[VersionGroup]:
    """
    Collapse a file list to one row per chain.

    Files without a group_id are their own chain. Each row holds the member
    with the highest version and the chain length; rows are ordered by the
    latest member's created_at, newest first.
    """
    groups: dict[str, list[FileEntity]] = {}
    for f in files:
        groups.setdefault(f.group_id or f.id, []).append(f)

    rows = [
        VersionGroup(
            latest=max(members, key=lambda m: m.version),
            version_count=len(members),
        )
        for members in groups.values()
    ]
    rows.sort(key=lambda row: row.latest.created_at, reverse=True)
    return rows

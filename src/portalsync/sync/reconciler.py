"""Reconciler: make a scope's ledger match its Drive folder."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from portalsync.errors import EntityNotFoundError, NotConnectedError, PortalSyncError
from portalsync.ledger import VersionLedger
from portalsync.models import OperationResult, RemoteFile, SyncResult
from portalsync.plan import Action, ReconcileOperation, ReconcilePlan, build_reconcile_plan
from portalsync.store import MetadataStore, Project
from portalsync.util.locks import KeyedLocks
from portalsync.util.time import now_utc

logger = logging.getLogger(__name__)


class FolderLister(Protocol):
    def list_container(self, container_id: str) -> list[RemoteFile]: ...


class ConnectionProbe(Protocol):
    def is_connected(self) -> bool: ...


class Reconciler:
    """
    Pulls the authoritative listing of a project's folder and applies the
    differences to the ledger.

    Notes:
        - Each operation commits on its own. A failure stops the pass and is
          raised after the earlier operations have committed; the sync cursor
          is then left untouched so the pass can run again at once.
        - The debounce check reads the cursor without locking across
          processes; two processes may both run a pass, which is harmless
          because a second pass over the same listing is a no-op.
    """

    def __init__(
        self,
        store: MetadataStore,
        storage: FolderLister,
        ledger: VersionLedger,
        tokens: ConnectionProbe,
        *,
        debounce: timedelta = timedelta(seconds=30),
        clock: Callable[[], datetime] = now_utc,
    ) -> None:
        self._store = store
        self._storage = storage
        self._ledger = ledger
        self._tokens = tokens
        self._debounce = debounce
        self._clock = clock
        self._running = KeyedLocks()

    def trigger_sync(self, scope_id: str, force: bool = False) -> SyncResult:
        """
        Reconcile one project, or report why the pass was skipped.

        Raises:
            PortalSyncError: remote or ledger failures during the pass.
        """
        project = self._store.get_project(scope_id)
        if project is None or not project.remote_folder_id:
            logger.debug("Sync skipped for %s: not syncable", scope_id)
            return SyncResult.skipped("not_syncable")

        if not force and self._recently_synced(project):
            logger.debug("Sync skipped for %s: debounced", scope_id)
            return SyncResult.skipped("debounced")

        if not self._tokens.is_connected():
            logger.debug("Sync skipped for %s: Drive not connected", scope_id)
            return SyncResult.skipped("not_connected")

        with self._running.try_hold(scope_id) as acquired:
            if not acquired:
                logger.debug("Sync skipped for %s: already running", scope_id)
                return SyncResult.skipped("in_progress")
            try:
                return self._run(project)
            except NotConnectedError:
                logger.debug("Sync skipped for %s: disconnected mid-pass", scope_id)
                return SyncResult.skipped("not_connected")

    # ----------------------------
    # Internals
    # ----------------------------
    def _recently_synced(self, project: Project) -> bool:
        if project.last_synced_at is None:
            return False
        return self._clock() - project.last_synced_at < self._debounce

    def _run(self, project: Project) -> SyncResult:
        remote_files = self._storage.list_container(project.remote_folder_id)  # type: ignore[arg-type]
        local_files = self._ledger.files_for_scope(project.id)

        plan = build_reconcile_plan(project.id, remote_files, local_files, created_at=self._clock())
        results = self._apply(plan, project)

        self._store.stamp_synced(project.id, self._clock())

        summary = plan.summary()
        changed = not plan.is_empty()
        if changed:
            logger.info(
                "Synced project %s: %d added, %d removed, %d renamed",
                project.id,
                summary[Action.ADD.value],
                summary[Action.DELETE.value],
                summary[Action.RENAME.value],
            )
        else:
            logger.debug("Synced project %s: no changes", project.id)

        return SyncResult(
            synced=True,
            changed=changed,
            plan_id=plan.plan_id,
            results=results,
            summary=summary,
        )

    def _apply(self, plan: ReconcilePlan, project: Project) -> list[OperationResult]:
        results: list[OperationResult] = []
        for op in plan.ordered():
            try:
                entity_id = self._apply_one(op, project)
            except PortalSyncError as exc:
                logger.warning(
                    "Sync of project %s stopped at %s %s: %s",
                    project.id,
                    op.action.value,
                    op.remote_id,
                    exc,
                )
                raise
            results.append(
                OperationResult(
                    op_id=op.op_id,
                    seq=op.seq,
                    action=op.action.value,
                    status="success",
                    entity_id=entity_id,
                    remote_id=op.remote_id,
                )
            )
        return results

    def _apply_one(self, op: ReconcileOperation, project: Project) -> Optional[str]:
        if op.action is Action.ADD:
            rf = op.remote_file
            if rf is None:
                raise ValueError("Missing required field: remote_file")
            entity = self._ledger.register_upload(
                project.id,
                rf.name,
                rf.remote_id,
                rf.mime_type,
                rf.size,
                project.created_by_id,
                synced_from_drive=True,
            )
            return entity.id

        if op.action is Action.DELETE:
            try:
                self._ledger.remove(op.entity_id)  # type: ignore[arg-type]
            except EntityNotFoundError:
                logger.debug("File %s already removed", op.entity_id)
            return op.entity_id

        if op.action is Action.RENAME:
            self._ledger.rename(op.entity_id, op.name)  # type: ignore[arg-type]
            return op.entity_id

        raise ValueError(f"Unsupported action: {op.action}")

"""MetadataStore: engine, sessions and CRUD for the metadata ledger."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .tables import (
    CREDENTIAL_ROW_ID,
    Activity,
    Base,
    CredentialRecord,
    FileEntity,
    Project,
)


class MetadataStore:
    """
    Transactional access to credentials, projects, files and activities.

    Objects returned from the query helpers are detached copies
    (expire_on_commit=False); mutate them through the store, not in place.
    """

    def __init__(self, url: str = "sqlite://", *, echo: bool = False) -> None:
        kwargs: dict[str, Any] = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, otherwise every session sees an empty DB.
                kwargs["poolclass"] = StaticPool

        self._init(create_engine(url, **kwargs))

    @classmethod
    def from_engine(cls, engine: Engine) -> MetadataStore:
        """Create a store over an existing engine (useful for tests)."""
        obj = cls.__new__(cls)
        obj._init(engine)
        return obj

    def _init(self, engine: Engine) -> None:
        self.engine = engine
        self.SessionLocal = sessionmaker(
            bind=engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Open a session; commit on success, roll back and re-raise on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ----------------------------
    # Credential record
    # ----------------------------
    def get_credential(self) -> Optional[CredentialRecord]:
        with self.session() as s:
            return s.get(CredentialRecord, CREDENTIAL_ROW_ID)

    def upsert_credential(
        self,
        *,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
        email: Optional[str],
    ) -> CredentialRecord:
        with self.session() as s:
            record = s.get(CredentialRecord, CREDENTIAL_ROW_ID)
            if record is None:
                record = CredentialRecord(id=CREDENTIAL_ROW_ID)
                s.add(record)
            record.access_token = access_token
            record.refresh_token = refresh_token
            record.expires_at = expires_at
            record.email = email
            s.flush()
            return record

    def update_access_token(
        self,
        access_token: str,
        expires_at: datetime,
        *,
        refresh_token: Optional[str] = None,
    ) -> Optional[CredentialRecord]:
        """
        Store a refreshed token pair in place.

        Returns None if the record was deleted (disconnected) meanwhile.
        """
        with self.session() as s:
            record = s.get(CredentialRecord, CREDENTIAL_ROW_ID)
            if record is None:
                return None
            record.access_token = access_token
            record.expires_at = expires_at
            if refresh_token:
                record.refresh_token = refresh_token
            s.flush()
            return record

    def delete_credential(self) -> bool:
        with self.session() as s:
            result = s.execute(
                delete(CredentialRecord).where(CredentialRecord.id == CREDENTIAL_ROW_ID)
            )
            return bool(result.rowcount)

    # ----------------------------
    # Projects
    # ----------------------------
    def add_project(
        self,
        name: str,
        *,
        created_by_id: Optional[str] = None,
        access_rules: Optional[list[str]] = None,
        remote_folder_id: Optional[str] = None,
        assets_folder_id: Optional[str] = None,
    ) -> Project:
        with self.session() as s:
            project = Project(
                name=name,
                created_by_id=created_by_id,
                access_rules=list(access_rules or []),
                remote_folder_id=remote_folder_id,
                assets_folder_id=assets_folder_id,
            )
            s.add(project)
            s.flush()
            return project

    def get_project(self, project_id: str) -> Optional[Project]:
        with self.session() as s:
            return s.get(Project, project_id)

    def set_project_folders(
        self,
        project_id: str,
        *,
        remote_folder_id: Optional[str] = None,
        assets_folder_id: Optional[str] = None,
    ) -> Optional[Project]:
        with self.session() as s:
            project = s.get(Project, project_id)
            if project is None:
                return None
            if remote_folder_id is not None:
                project.remote_folder_id = remote_folder_id
            if assets_folder_id is not None:
                project.assets_folder_id = assets_folder_id
            s.flush()
            return project

    def stamp_synced(self, project_id: str, when: datetime) -> None:
        with self.session() as s:
            project = s.get(Project, project_id)
            if project is not None:
                project.last_synced_at = when

    # ----------------------------
    # Files
    # ----------------------------
    def get_file(self, file_id: str) -> Optional[FileEntity]:
        with self.session() as s:
            return s.get(FileEntity, file_id)

    def find_file_by_remote_id(
        self,
        project_id: Optional[str],
        remote_id: str,
    ) -> Optional[FileEntity]:
        with self.session() as s:
            stmt = select(FileEntity).where(
                scope_clause(project_id),
                FileEntity.remote_id == remote_id,
            )
            return s.scalars(stmt).first()

    def list_files(self, project_id: Optional[str]) -> list[FileEntity]:
        """All files in a scope, newest first."""
        with self.session() as s:
            stmt = (
                select(FileEntity)
                .where(scope_clause(project_id))
                .order_by(FileEntity.created_at.desc(), FileEntity.version.desc())
            )
            return list(s.scalars(stmt))

    def list_current_files(self, project_id: Optional[str]) -> list[FileEntity]:
        with self.session() as s:
            stmt = (
                select(FileEntity)
                .where(scope_clause(project_id), FileEntity.is_current.is_(True))
                .order_by(FileEntity.original_name)
            )
            return list(s.scalars(stmt))

    def list_group(self, group_id: str) -> list[FileEntity]:
        """All members of a version chain, highest version first."""
        with self.session() as s:
            stmt = (
                select(FileEntity)
                .where(FileEntity.group_id == group_id)
                .order_by(FileEntity.version.desc())
            )
            return list(s.scalars(stmt))

    def count_files(self, project_id: Optional[str]) -> int:
        with self.session() as s:
            stmt = select(func.count()).select_from(FileEntity).where(scope_clause(project_id))
            return int(s.scalar(stmt) or 0)

    # ----------------------------
    # Activities
    # ----------------------------
    def add_activity(
        self,
        event_type: str,
        description: str,
        actor_id: Optional[str],
    ) -> Activity:
        with self.session() as s:
            activity = Activity(
                event_type=event_type,
                description=description,
                actor_id=actor_id,
            )
            s.add(activity)
            s.flush()
            return activity

    def list_activities(self, limit: int = 50) -> list[Activity]:
        with self.session() as s:
            stmt = select(Activity).order_by(Activity.created_at.desc()).limit(limit)
            return list(s.scalars(stmt))


def scope_clause(project_id: Optional[str]):
    """WHERE clause selecting one scope; None is the orphan pool."""
    if project_id is None:
        return FileEntity.project_id.is_(None)
    return FileEntity.project_id == project_id

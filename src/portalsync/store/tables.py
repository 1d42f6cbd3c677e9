"""SQLAlchemy models for the metadata ledger."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from portalsync.util.ids import new_entity_id
from portalsync.util.time import as_utc, now_utc

CREDENTIAL_ROW_ID = "singleton"


class UTCDateTime(TypeDecorator):
    """DateTime that always hands back tz-aware UTC values (SQLite stores naive)."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)


class Base(DeclarativeBase):
    pass


class CredentialRecord(Base):
    """
    The one connected Drive account.

    A single row keyed by CREDENTIAL_ROW_ID; refreshed in place.
    """

    __tablename__ = "google_tokens"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=CREDENTIAL_ROW_ID)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str] = mapped_column(Text, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=now_utc, onupdate=now_utc)


class Project(Base):
    """A scope owning a set of files and (once provisioned) a Drive folder."""

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_entity_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    remote_folder_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    assets_folder_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    # Sync cursor.
    last_synced_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)

    created_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    access_rules: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=now_utc)


class FileEntity(Base):
    """One concrete uploaded object, positioned in a version chain."""

    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_entity_id)
    remote_id: Mapped[str] = mapped_column(String(128), nullable=False)

    name: Mapped[str] = mapped_column(String(1024), nullable=False)
    original_name: Mapped[str] = mapped_column(String(1024), nullable=False)
    display_name: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    content_type: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, default="OTHER")

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    group_id: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    synced_from_drive: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    project_id: Mapped[Optional[str]] = mapped_column(
        String(32), ForeignKey("projects.id", ondelete="CASCADE"), nullable=True
    )
    uploaded_by_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=now_utc)

    __table_args__ = (
        UniqueConstraint("project_id", "remote_id", name="uq_files_project_remote"),
        Index("idx_files_project_name", "project_id", "original_name"),
        Index("idx_files_group_version", "group_id", "version"),
    )


class Activity(Base):
    """Audit trail entry written by StoreActivitySink."""

    __tablename__ = "activities"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_entity_id)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    actor_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=now_utc)

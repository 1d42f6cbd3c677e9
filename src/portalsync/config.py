"""Runtime settings for portalsync."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Mapping, Optional


@dataclass(slots=True, frozen=True)
class PortalSettings:
    """
    Tunables for folder layout, sync debouncing, token refresh and exports.

    Defaults match the portal's production values.
    """

    root_folder_name: str = "Client Delivery Portal"
    general_folder_name: str = "_General Files"
    assets_folder_name: str = "_assets"

    sync_debounce: timedelta = timedelta(seconds=30)
    refresh_margin: timedelta = timedelta(minutes=5)

    small_upload_limit: int = 5 * 1024 * 1024
    export_max_files: int = 200
    export_max_bytes: int = 2 * 1024 * 1024 * 1024
    download_chunk_size: int = 1024 * 1024

    def __post_init__(self) -> None:
        for key in ("root_folder_name", "general_folder_name", "assets_folder_name"):
            value = getattr(self, key)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"PortalSettings.{key} must be a non-empty string")

        if self.sync_debounce < timedelta(0):
            raise ValueError("PortalSettings.sync_debounce must not be negative")
        if self.refresh_margin < timedelta(0):
            raise ValueError("PortalSettings.refresh_margin must not be negative")

        for key in (
            "small_upload_limit",
            "export_max_files",
            "export_max_bytes",
            "download_chunk_size",
        ):
            if getattr(self, key) <= 0:
                raise ValueError(f"PortalSettings.{key} must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> PortalSettings:
        """
        Build from PORTALSYNC_* environment variables; unset keys keep defaults.

        Recognised: PORTALSYNC_ROOT_FOLDER, PORTALSYNC_GENERAL_FOLDER,
        PORTALSYNC_ASSETS_FOLDER, PORTALSYNC_SYNC_DEBOUNCE_SECONDS,
        PORTALSYNC_REFRESH_MARGIN_SECONDS, PORTALSYNC_SMALL_UPLOAD_LIMIT,
        PORTALSYNC_EXPORT_MAX_FILES, PORTALSYNC_EXPORT_MAX_BYTES.
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, object] = {}

        for key, env_name in (
            ("root_folder_name", "PORTALSYNC_ROOT_FOLDER"),
            ("general_folder_name", "PORTALSYNC_GENERAL_FOLDER"),
            ("assets_folder_name", "PORTALSYNC_ASSETS_FOLDER"),
        ):
            if env.get(env_name):
                kwargs[key] = env[env_name]

        for key, env_name in (
            ("sync_debounce", "PORTALSYNC_SYNC_DEBOUNCE_SECONDS"),
            ("refresh_margin", "PORTALSYNC_REFRESH_MARGIN_SECONDS"),
        ):
            if env.get(env_name):
                kwargs[key] = timedelta(seconds=_parse_number(env_name, env[env_name]))

        for key, env_name in (
            ("small_upload_limit", "PORTALSYNC_SMALL_UPLOAD_LIMIT"),
            ("export_max_files", "PORTALSYNC_EXPORT_MAX_FILES"),
            ("export_max_bytes", "PORTALSYNC_EXPORT_MAX_BYTES"),
        ):
            if env.get(env_name):
                kwargs[key] = int(_parse_number(env_name, env[env_name]))

        return cls(**kwargs)  # type: ignore[arg-type]


def _parse_number(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got {raw!r}") from exc

from .ids import new_entity_id, new_group_id, new_op_id, new_plan_id, new_uuid
from .locks import KeyedLocks
from .mime import (
    DEFAULT_CONTENT_TYPE,
    FOLDER_MIME,
    is_folder,
    is_google_app,
    normalize_content_type,
)
from .time import as_utc, normalize_dt, now_utc, parse_rfc3339

__all__ = [
    "new_uuid",
    "new_plan_id",
    "new_op_id",
    "new_entity_id",
    "new_group_id",
    "KeyedLocks",
    "FOLDER_MIME",
    "DEFAULT_CONTENT_TYPE",
    "is_folder",
    "is_google_app",
    "normalize_content_type",
    "now_utc",
    "parse_rfc3339",
    "normalize_dt",
    "as_utc",
]

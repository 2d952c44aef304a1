from .batch_upsert import UPSERT_COLUMNS, BatchMetrics, BatchUpsertError, UpsertResult
from .connection import db_cursor, resolve_dsn
from .sync_metadata import SyncStateError, load_sync_state, mark_sync_failed, save_sync_state, touch_sync_state

# no batch_upsert() here: the name belongs to the submodule
__all__ = [
    "UPSERT_COLUMNS",
    "BatchMetrics",
    "BatchUpsertError",
    "SyncStateError",
    "UpsertResult",
    "db_cursor",
    "load_sync_state",
    "mark_sync_failed",
    "resolve_dsn",
    "save_sync_state",
    "touch_sync_state",
]

from .schema import DTYPES, SessionHistoryRow
from .store import (
    init_store,
    validate_records,
    append_session_history,
    load_all,
    query_exercise,
    clear_exercise,
    export_ndjson,
)

__all__ = [
    "DTYPES",
    "SessionHistoryRow",
    "init_store",
    "validate_records",
    "append_session_history",
    "load_all",
    "query_exercise",
    "clear_exercise",
    "export_ndjson",
]

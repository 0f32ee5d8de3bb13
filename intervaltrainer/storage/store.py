from __future__ import annotations

"""Parquet-backed store for session history using pandas + pyarrow.

Unit of data: one row per finished practice session.
"""

from pathlib import Path

import pandas as pd
import pyarrow  # noqa: F401  (parquet engine)

from .schema import DTYPES, SessionHistoryRow


DATA_FILE = "session_history.parquet"


def _empty_df() -> pd.DataFrame:
    return pd.DataFrame({k: pd.Series(dtype=v) for k, v in DTYPES.items()})


def _fix_dtypes(df: pd.DataFrame) -> pd.DataFrame:
    for col, dt in DTYPES.items():
        if col not in df.columns:
            df[col] = pd.Series(pd.NA, index=df.index)
        df[col] = df[col].astype(dt)
    return df[list(DTYPES.keys())]


def init_store(data_dir: Path) -> None:
    """Ensure the data directory and an empty Parquet file with the right schema exist."""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    path = data_dir / DATA_FILE
    if not path.exists():
        _empty_df().to_parquet(path, engine="pyarrow", compression="zstd", index=False)


def validate_records(records: list[SessionHistoryRow]) -> pd.DataFrame:
    """Validate rows via Pydantic and return a DataFrame with the store's dtypes."""
    if not isinstance(records, list):
        raise TypeError("records must be a list[SessionHistoryRow]")
    rows = [r if isinstance(r, SessionHistoryRow) else SessionHistoryRow.model_validate(r) for r in records]
    df = pd.DataFrame([r.model_dump() for r in rows])
    if df.empty:
        return _empty_df()
    return _fix_dtypes(df)


def append_session_history(df_new: pd.DataFrame, data_dir: Path) -> None:
    """Append rows, replacing any earlier row with the same session_id."""
    f = Path(data_dir) / DATA_FILE
    df_old = pd.read_parquet(f, engine="pyarrow") if f.exists() else _empty_df()
    df_new = _fix_dtypes(df_new.copy())
    if not df_old.empty:
        df_old = df_old[~df_old["session_id"].astype("string").isin(df_new["session_id"])]
    combined = pd.concat([df_old, df_new], ignore_index=True) if not df_old.empty else df_new
    combined = _fix_dtypes(combined)
    combined.to_parquet(f, engine="pyarrow", compression="zstd", index=False)


def load_all(data_dir: Path) -> pd.DataFrame:
    """Load all sessions sorted by date, oldest first."""
    f = Path(data_dir) / DATA_FILE
    if not f.exists():
        return _empty_df()
    df = _fix_dtypes(pd.read_parquet(f, engine="pyarrow"))
    return df.sort_values("session_date").reset_index(drop=True)


def query_exercise(df: pd.DataFrame, exercise_name: str) -> pd.DataFrame:
    """Sessions of one exercise, oldest first."""
    dff = df[df["exercise_name"].astype("string") == exercise_name]
    return dff.sort_values("session_date").reset_index(drop=True)


def clear_exercise(data_dir: Path, exercise_name: str) -> int:
    """Delete the history of one exercise; returns the number of rows removed."""
    f = Path(data_dir) / DATA_FILE
    if not f.exists():
        return 0
    df = _fix_dtypes(pd.read_parquet(f, engine="pyarrow"))
    keep = df[df["exercise_name"].astype("string") != exercise_name]
    removed = len(df) - len(keep)
    if removed:
        keep.reset_index(drop=True).to_parquet(f, engine="pyarrow", compression="zstd", index=False)
    return removed


def export_ndjson(df: pd.DataFrame, out_path: Path) -> None:
    """Export a DataFrame to line-delimited JSON (NDJSON) for quick inspection."""
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    df.to_json(out_path, orient="records", lines=True, date_format="iso")

from __future__ import annotations

"""Schema constants and Pydantic models for Parquet-backed session history."""

from datetime import datetime, timezone

import pandas as pd
from pydantic import BaseModel, Field, field_validator, model_validator

# --- Constants ---

DTYPES = {
    "session_id": "string",
    # timezone-aware UTC timestamps
    "session_date": pd.DatetimeTZDtype(tz="UTC"),
    "exercise_name": "string",
    "score": "UInt8",
    "total_attempts": "UInt32",
    "correct_attempts": "UInt32",
    "avg_secs_per_answer": "float32",
    "total_seconds": "UInt32",
    "needs_practice_count": "UInt32",
    "needs_practice_total_severity": "UInt32",
    "settings": "string",
}


# --- Pydantic models ---

class SessionHistoryRow(BaseModel):
    """One finished practice session."""

    session_id: str
    session_date: datetime
    exercise_name: str
    score: int = Field(ge=0, le=100)
    total_attempts: int = Field(ge=1)
    correct_attempts: int = Field(ge=0)
    avg_secs_per_answer: float = Field(ge=0)
    total_seconds: int = Field(ge=0)
    needs_practice_count: int = Field(default=0, ge=0)
    needs_practice_total_severity: int = Field(default=0, ge=0)
    settings: str = "{}"

    @model_validator(mode="after")
    def _correct_le_total(self) -> "SessionHistoryRow":
        if self.correct_attempts > self.total_attempts:
            raise ValueError("correct_attempts must be <= total_attempts")
        return self

    @field_validator("session_date")
    @classmethod
    def _ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

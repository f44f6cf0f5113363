# reports.py
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

import pandas as pd

from metrics.ratings import average_rating, rating_band
from metrics.sentiment import sentiment_category

FEEDBACK_COLUMNS = [
    "id", "session_id", "trainee_id", "overall_rating", "knowledge_rating",
    "communication_rating", "materials_rating", "engagement_rating",
    "comments", "strengths", "improvements", "sentiment_score", "created_at",
]

# calendar offsets: a month back from 31 March is 29 February
PERIODS = {
    "week": pd.DateOffset(days=7),
    "month": pd.DateOffset(months=1),
    "quarter": pd.DateOffset(months=3),
}

def _records(items: Iterable) -> List[dict]:
    return [i if isinstance(i, dict) else i.to_dict() for i in items or []]

def _utcnow(now: Optional[datetime]) -> pd.Timestamp:
    ts = pd.Timestamp(now or datetime.now(timezone.utc))
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")

def feedback_frame(records: Iterable) -> pd.DataFrame:
    """Feedback as a DataFrame with parsed timestamps, sentiment category and rating band."""
    df = pd.DataFrame(_records(records), columns=FEEDBACK_COLUMNS)
    df["created_at"] = pd.to_datetime(df["created_at"], errors="coerce", utc=True)
    # float64 keeps merges working when the frame is empty
    for col in ["id", "session_id", "trainee_id", "overall_rating", "sentiment_score"]:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype("float64")
    df["sentiment"] = df["sentiment_score"].apply(
        lambda s: sentiment_category(int(s)) if pd.notna(s) else None
    )
    df["band"] = df["overall_rating"].apply(lambda r: rating_band(int(r)) if pd.notna(r) else None)
    return df

def filter_feedback(df: pd.DataFrame, band: Optional[str] = None,
                    period: Optional[str] = None, now: Optional[datetime] = None) -> pd.DataFrame:
    """
    band: "high" (>=4), "medium" (2-3), "low" (<2) or None/"all"
    period: "week", "month", "quarter" or None/"all"
    """
    mask = pd.Series(True, index=df.index)
    if band and band != "all":
        mask &= df["band"].eq(band)
    if period and period != "all":
        if period not in PERIODS:
            raise ValueError(f"Unknown period: {period}")
        cutoff = _utcnow(now) - PERIODS[period]
        mask &= df["created_at"] >= cutoff
    return df[mask].copy()

def history_metrics(records: Iterable, now: Optional[datetime] = None) -> Dict[str, float]:
    """Totals for a trainee's history page."""
    records = _records(records)
    df = feedback_frame(records)
    if df.empty:
        return {"total": 0, "avg_rating": 0.0, "sessions": 0, "recent": 0}
    cutoff = _utcnow(now) - PERIODS["month"]
    return {
        "total": int(len(df)),
        "avg_rating": average_rating(records),
        "sessions": int(df["session_id"].nunique()),
        "recent": int((df["created_at"] >= cutoff).sum()),
    }

def monthly_trends(df: pd.DataFrame) -> pd.DataFrame:
    """Per calendar month: average rating, average sentiment and feedback count."""
    if df.empty:
        return pd.DataFrame(columns=["month", "avg_rating", "avg_sentiment", "total_feedback"])
    out = (
        df.dropna(subset=["created_at"])
        .assign(month=lambda d: d["created_at"].dt.tz_localize(None).dt.to_period("M").dt.to_timestamp())
        .groupby("month")
        .agg(
            avg_rating=("overall_rating", "mean"),
            avg_sentiment=("sentiment_score", "mean"),
            total_feedback=("id", "count"),
        )
        .reset_index()
    )
    out["avg_rating"] = out["avg_rating"].round(1)
    out["avg_sentiment"] = out["avg_sentiment"].round(0)
    return out

def _trainer_frame(feedback: Iterable, sessions: Iterable, trainers: Iterable) -> pd.DataFrame:
    fb = feedback_frame(feedback)
    ss = pd.DataFrame(_records(sessions), columns=["id", "trainer_id"])
    tr = pd.DataFrame(_records(trainers))
    if tr.empty:
        tr = pd.DataFrame(columns=["id", "user_id", "department", "specialty", "full_name"])
    if "full_name" not in tr.columns:
        tr["full_name"] = None
    ss = ss.rename(columns={"id": "session_id"}).astype("float64")
    tr = tr.rename(columns={"id": "trainer_id"})
    tr["trainer_id"] = tr["trainer_id"].astype("float64")
    merged = fb.merge(ss, on="session_id", how="left")
    out = tr.merge(merged, on="trainer_id", how="left")
    out["trainer_id"] = out["trainer_id"].astype(int)
    return out

def trainer_leaderboard(feedback: Iterable, sessions: Iterable, trainers: Iterable) -> pd.DataFrame:
    """One row per trainer, best average rating first. Trainers without feedback sort last."""
    df = _trainer_frame(feedback, sessions, trainers)
    out = (
        df.groupby(["trainer_id", "full_name", "department"], dropna=False)
        .agg(
            feedback_count=("id", "count"),
            avg_rating=("overall_rating", "mean"),
            avg_sentiment=("sentiment_score", "mean"),
        )
        .reset_index()
    )
    out["avg_rating"] = out["avg_rating"].round(1)
    out["avg_sentiment"] = out["avg_sentiment"].round(0)
    return out.sort_values(["avg_rating", "feedback_count"], ascending=[False, False],
                           na_position="last").reset_index(drop=True)

def department_summary(feedback: Iterable, sessions: Iterable, trainers: Iterable) -> pd.DataFrame:
    df = _trainer_frame(feedback, sessions, trainers)
    out = (
        df.groupby("department")
        .agg(avg_rating=("overall_rating", "mean"), feedback_count=("id", "count"))
        .reset_index()
    )
    out["avg_rating"] = out["avg_rating"].round(1)
    return out.sort_values("avg_rating", ascending=False, na_position="last").reset_index(drop=True)

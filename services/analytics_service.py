import math
from numbers import Number
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from use_cases.domain_models import RosterStats, StudentStats, StudentSummary

ATTEMPT_COLUMNS = ["id", "userId", "testId", "status", "score", "duration", "startedAt", "completedAt"]
SCORE_BANDS = [f"{low}-{low + 9}" for low in range(0, 90, 10)] + ["90-100"]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _numeric_or_zero(value: Any) -> float:
    if isinstance(value, Number) and not isinstance(value, bool):
        if isinstance(value, float) and math.isnan(value):
            return 0.0
        return float(value)
    return 0.0


def format_duration(total_minutes: float) -> str:
    """Formats minutes as "{h}h {m}m"."""
    total_minutes = max(total_minutes, 0)
    hours = int(total_minutes // 60)
    minutes = int(total_minutes % 60)
    return f"{hours}h {minutes}m"


def attempts_frame(attempts: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Normalizes raw attempt records into a DataFrame with a fixed column set."""
    df = pd.DataFrame(list(attempts))
    for col in ATTEMPT_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df["score_num"] = pd.to_numeric(df["score"], errors="coerce")
    df["duration_num"] = df["duration"].map(_numeric_or_zero) if not df.empty else pd.Series(dtype=float)
    df["is_completed"] = (df["status"] == "completed") & df["score_num"].notna()
    return df


def compute_student_stats(user_id: str, attempts: Sequence[Dict[str, Any]]) -> StudentStats:
    """
    Aggregates one student's attempts.
    Completed = status 'completed' with a score; time counts every attempt.
    """
    user_attempts = [a for a in attempts if a.get("userId") == user_id]
    completed = [a for a in user_attempts if a.get("status") == "completed" and a.get("score") is not None]

    tests_completed = len(completed)
    average_score = (
        _round_half_up(sum(_numeric_or_zero(a.get("score")) for a in completed) / tests_completed)
        if tests_completed > 0 else 0
    )
    total_minutes = sum(_numeric_or_zero(a.get("duration")) for a in user_attempts)

    return StudentStats(
        tests_completed=tests_completed,
        average_score=average_score,
        total_minutes=total_minutes,
        total_time_spent=format_duration(total_minutes),
    )


def compute_roster_stats(students: Sequence[StudentSummary]) -> RosterStats:
    total = len(students)
    active = sum(1 for s in students if s.status == "active")
    if total == 0:
        return RosterStats(total_students=0, active_students=0, active_percent=0, avg_tests_completed="0", avg_score="0")

    avg_tests = sum(s.tests_completed for s in students) / total
    avg_score = sum(s.average_score for s in students) / total
    return RosterStats(
        total_students=total,
        active_students=active,
        active_percent=_round_half_up(active / total * 100),
        avg_tests_completed=f"{avg_tests:.1f}",
        avg_score=f"{avg_score:.1f}",
    )


def compute_test_summary(attempts: Sequence[Dict[str, Any]], tests: Optional[Sequence[Dict[str, Any]]] = None) -> pd.DataFrame:
    """Per-test attempts, completions, completion rate (%) and average score."""
    columns = ["test_id", "title", "attempts", "completed", "completion_rate", "average_score"]
    df = attempts_frame(attempts)
    df = df[df["testId"].notna()]
    if df.empty:
        return pd.DataFrame(columns=columns)

    grouped = df.groupby("testId").agg(
        attempts=("testId", "size"),
        completed=("is_completed", "sum"),
    )
    avg = df[df["is_completed"]].groupby("testId")["score_num"].mean()
    grouped["average_score"] = avg.reindex(grouped.index).fillna(0).round(1)
    grouped["completed"] = grouped["completed"].astype(int)
    grouped["completion_rate"] = (grouped["completed"] / grouped["attempts"] * 100).round(1)

    titles = {t.get("id"): t.get("title") or t.get("id") for t in (tests or [])}
    summary = grouped.reset_index().rename(columns={"testId": "test_id"})
    summary["title"] = summary["test_id"].map(lambda tid: titles.get(tid, tid))
    return summary[columns].sort_values("attempts", ascending=False).reset_index(drop=True)


def compute_score_distribution(attempts: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """Counts completed scores in 10-point bands; 100 falls into the top band."""
    df = attempts_frame(attempts)
    scores = df.loc[df["is_completed"], "score_num"].clip(lower=0, upper=100)
    band_index = (scores // 10).clip(upper=9).astype(int)
    counts = band_index.value_counts().reindex(range(10), fill_value=0)
    return pd.DataFrame({"band": SCORE_BANDS, "count": counts.values.astype(int)})


def compute_daily_activity(attempts: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    df = attempts_frame(attempts)
    stamps = df["completedAt"].where(df["completedAt"].notna(), df["startedAt"])
    stamps = pd.to_datetime(stamps, errors="coerce", utc=True).dropna()
    if stamps.empty:
        return pd.DataFrame(columns=["date", "attempts"])
    daily = stamps.dt.date.value_counts().sort_index()
    return pd.DataFrame({"date": daily.index, "attempts": daily.values.astype(int)})


def attempts_for_user(user_id: str, attempts: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [a for a in attempts if a.get("userId") == user_id]

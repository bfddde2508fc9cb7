"""
Alignment provider: turns declared standards and observed habit logs into
one 0–100 PillarAlignment per pillar, plus the snapshot history the drift
and regression rules compare against.

Scoring model:
    Every active habit under a pillar contributes to every standard under
    that pillar. A standard's score is completions / expected completions
    over the date range, where expected = Σ target_days_per_week × weeks.
    A pillar's score is the mean of its standard scores, falling back to
    the raw habit completion rate when it declares no standards.

Pure transforms. No I/O, no side effects.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from mirror.config import AlignmentParams, MirrorConfig
from mirror.dates import DAY_FORMAT, calendar_weeks_spanned, days_before, round_half_up
from mirror.models import (
    Habit,
    HabitLog,
    PerformanceSnapshot,
    Pillar,
    PillarAlignment,
    Standard,
    StandardAlignment,
)


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date

    @property
    def weeks(self) -> int:
        return calendar_weeks_spanned(self.start, self.end)


# ---------------------------------------------------------------------------
# Date windows
# ---------------------------------------------------------------------------

def default_date_range(today: date, cfg: MirrorConfig | None = None) -> DateRange:
    """The current scoring period: the trailing window ending today."""
    if cfg is None:
        cfg = MirrorConfig()
    period = cfg.windows.period_days
    return DateRange(days_before(today, period - 1), today)


def previous_date_range(today: date, cfg: MirrorConfig | None = None) -> DateRange:
    """The period immediately before `default_date_range`, same length."""
    if cfg is None:
        cfg = MirrorConfig()
    period = cfg.windows.period_days
    return DateRange(days_before(today, 2 * period - 1), days_before(today, period))


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def classify_trend(
    score: float,
    previous_snapshots: Sequence[PerformanceSnapshot],
    pillar_id: int,
    params: AlignmentParams,
) -> str:
    """Compare against the first snapshot for the pillar; no baseline → flat."""
    prev = next((s for s in previous_snapshots if s.pillar_id == pillar_id), None)
    if prev is None:
        return "flat"
    diff = score - prev.score
    if diff > params.trend_delta:
        return "up"
    if diff < -params.trend_delta:
        return "down"
    return "flat"


def classify_state(score: float, trend: str, params: AlignmentParams) -> str:
    """
    Map (score, trend) to an alignment state.

    Decision order matters: first match wins.
    """
    if score >= params.aligned:
        return "aligned"
    if score >= params.improving and trend == "up":
        return "improving"
    if score >= params.drifting:
        return "drifting"
    if trend == "down":
        return "regressing"
    return "avoiding"


# ---------------------------------------------------------------------------
# Completion counting
# ---------------------------------------------------------------------------

def completion_frame(habit_logs: Iterable[HabitLog]) -> pd.DataFrame:
    """Completed logs as a (habit_id, day) frame; unparseable dates dropped."""
    rows = [
        {"habit_id": log.habit_id, "date": log.date}
        for log in habit_logs
        if log.completed
    ]
    df = pd.DataFrame(rows, columns=["habit_id", "date"])
    df["day"] = pd.to_datetime(df["date"], format=DAY_FORMAT, errors="coerce")
    df = df.dropna(subset=["day"]).drop_duplicates(subset=["habit_id", "day"])
    return df


def _count_completions(df: pd.DataFrame, habit_ids: Sequence[int], rng: DateRange) -> int:
    if df.empty or not habit_ids:
        return 0
    mask = (
        df["habit_id"].isin(list(habit_ids))
        & (df["day"] >= pd.Timestamp(rng.start))
        & (df["day"] <= pd.Timestamp(rng.end))
    )
    return int(mask.sum())


def _completion_rate(completed: int, expected: int) -> int:
    if expected <= 0:
        return 0
    return int(np.clip(round_half_up(completed / expected * 100), 0, 100))


def _fmt_target(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def score_standard(
    standard: Standard,
    pillar_habits: Sequence[Habit],
    df: pd.DataFrame,
    rng: DateRange,
) -> StandardAlignment:
    """Score one standard from the completions of its pillar's habits."""
    target = _fmt_target(standard.target)
    if not pillar_habits:
        return StandardAlignment(
            standard=standard,
            observed=0.0,
            target=standard.target,
            score=0,
            label=f"0 / {target} {standard.unit}".rstrip(),
        )

    weeks = rng.weeks
    completed = _count_completions(df, [h.id for h in pillar_habits], rng)
    expected = sum(h.target_days_per_week * weeks for h in pillar_habits)

    observed_per_week = completed / weeks / max(1, len(pillar_habits))

    return StandardAlignment(
        standard=standard,
        observed=round_half_up(observed_per_week * 10) / 10,
        target=standard.target,
        score=_completion_rate(completed, expected),
        label=f"{observed_per_week:.1f} / {target} {standard.unit}".rstrip(),
    )


def compute_alignments(
    pillars: Sequence[Pillar],
    standards: Sequence[Standard],
    habits: Sequence[Habit],
    habit_logs: Sequence[HabitLog],
    previous_snapshots: Sequence[PerformanceSnapshot],
    date_range: DateRange,
    today: date,
    cfg: MirrorConfig | None = None,
) -> List[PillarAlignment]:
    """
    One PillarAlignment per pillar, in the order the pillars are given.

    Archived habits and habits pointing at no pillar are ignored.
    """
    if cfg is None:
        cfg = MirrorConfig()
    params = cfg.alignment

    df = completion_frame(habit_logs)
    today_range = DateRange(today, today)
    alignments: List[PillarAlignment] = []

    for pillar in pillars:
        pillar_standards = [s for s in standards if s.pillar_id == pillar.id]
        pillar_habits = [h for h in habits if h.pillar_id == pillar.id and h.is_active]

        standard_alignments = [
            score_standard(s, pillar_habits, df, date_range) for s in pillar_standards
        ]

        if standard_alignments:
            score = round_half_up(
                float(np.mean([sa.score for sa in standard_alignments]))
            )
        elif pillar_habits:
            completed = _count_completions(df, [h.id for h in pillar_habits], date_range)
            expected = sum(h.target_days_per_week * date_range.weeks for h in pillar_habits)
            score = _completion_rate(completed, expected)
        else:
            score = 0

        trend = classify_trend(score, previous_snapshots, pillar.id, params)

        completed_today = sum(
            1 for h in pillar_habits
            if _count_completions(df, [h.id], today_range) > 0
        )

        alignments.append(
            PillarAlignment(
                pillar_id=pillar.id,
                pillar_name=pillar.name,
                pillar_color=pillar.color,
                score=score,
                alignment_state=classify_state(score, trend, params),
                trend=trend,
                standards=tuple(standard_alignments),
                habit_count=len(pillar_habits),
                completed_habit_count=completed_today,
            )
        )

    return alignments


# ---------------------------------------------------------------------------
# Snapshot history
# ---------------------------------------------------------------------------

def snapshot_period(day: date) -> str:
    """Snapshots are captured once per calendar month."""
    return day.strftime("%Y-%m")


def capture_snapshots(
    alignments: Iterable[PillarAlignment],
    captured_at: str,
) -> Tuple[PerformanceSnapshot, ...]:
    return tuple(
        PerformanceSnapshot(pillar_id=a.pillar_id, score=a.score, captured_at=captured_at)
        for a in alignments
    )


def latest_snapshots(
    snapshots: Iterable[PerformanceSnapshot],
    before: Optional[str] = None,
) -> Tuple[PerformanceSnapshot, ...]:
    """
    Newest snapshot per pillar, newest first.

    With `before`, only snapshots captured strictly earlier than that
    period are considered, so the current month never baselines itself.
    """
    ordered = sorted(snapshots, key=lambda s: s.captured_at, reverse=True)
    seen: Dict[int, PerformanceSnapshot] = {}
    for snap in ordered:
        if before is not None and snap.captured_at >= before:
            continue
        seen.setdefault(snap.pillar_id, snap)
    return tuple(seen.values())

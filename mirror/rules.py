"""
Advisory rules: ten independent detectors over one EngineState.

Each rule is a pure function ``(state, cfg) -> List[AlertCandidate]``.
Missing or insufficient data is never an error: the rule returns an
empty list. Alert ids are built from the rule name and the triggering
entity's id(s), so the same condition always maps to the same id.

Severity is fixed per rule:
    challenge   — a behavioral contradiction worth confronting
    warning     — an early, time-bounded risk
    opportunity — positive framing when performing well
    insight     — a neutral statistical pattern
"""

from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from mirror.config import MirrorConfig
from mirror.dates import (
    DAY_FORMAT,
    SUNDAY,
    days_before,
    days_between,
    format_day,
    parse_day,
    round_half_up,
)
from mirror.models import AlertCandidate, EngineState
from mirror.streaks import streak_ending


Rule = Callable[[EngineState, MirrorConfig], List[AlertCandidate]]


def make_alert(
    alert_id: str,
    severity: str,
    pillar_id: Optional[int],
    title: str,
    message: str,
    action: Optional[str] = None,
) -> AlertCandidate:
    return AlertCandidate(
        id=alert_id,
        severity=severity,
        pillar_id=pillar_id,
        title=title,
        message=message,
        action=action,
    )


def _mean_score(alignments) -> float:
    return float(np.mean([a.score for a in alignments]))


# ---------------------------------------------------------------------------
# 1. Pillar drift
# ---------------------------------------------------------------------------

def rule_pillar_drift(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """Challenge every pillar that fell more than the drift threshold since its snapshot."""
    alerts: List[AlertCandidate] = []
    for a in state.alignments:
        prev = next((s for s in state.previous_snapshots if s.pillar_id == a.pillar_id), None)
        if prev is None:
            continue
        drop = prev.score - a.score
        if drop > cfg.drift.max_drop:
            alerts.append(make_alert(
                f"drift-{a.pillar_id}",
                "challenge",
                a.pillar_id,
                f"{a.pillar_name}: Major Drift Detected",
                f"Your {a.pillar_name} score dropped from {prev.score} to {a.score} "
                f"since last month. This is a {drop} point decline. What changed?",
                "Review habits",
            ))
    return alerts


# ---------------------------------------------------------------------------
# 2. Streak broken
# ---------------------------------------------------------------------------

def rule_streak_broken(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """
    Warn when yesterday broke a streak of meaningful length.

    The streak is reconstructed backward from the day before yesterday;
    today's log (done or not) plays no part.
    """
    alerts: List[AlertCandidate] = []
    today = state.reference_day
    yesterday = format_day(days_before(today, 1))
    before_yesterday = days_before(today, 2)

    for habit in state.habits:
        if not habit.is_active:
            continue
        logs = [log for log in state.habit_logs if log.habit_id == habit.id]
        if any(log.date == yesterday and log.completed for log in logs):
            continue

        prev_streak = streak_ending(habit.id, logs, before_yesterday)
        if prev_streak >= cfg.streak.min_broken_streak:
            alerts.append(make_alert(
                f"streak-broken-{habit.id}",
                "warning",
                habit.pillar_id,
                f"{habit.title}: {prev_streak}-Day Streak Broken",
                f'You built a {prev_streak}-day streak on "{habit.title}" and missed '
                "yesterday. One miss is a slip. Two is a pattern. Get back on track today.",
                "Log today",
            ))
    return alerts


# ---------------------------------------------------------------------------
# 3. Standard violation
# ---------------------------------------------------------------------------

def rule_standard_violation(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """One challenge per violating standard, so a pillar can raise several."""
    st = cfg.standard
    alerts: List[AlertCandidate] = []
    for a in state.alignments:
        for sa in a.standards:
            if sa.score < st.violation_score and sa.target > st.min_target:
                alerts.append(make_alert(
                    f"standard-viol-{sa.standard.id}",
                    "challenge",
                    a.pillar_id,
                    f"Standard Violation: {sa.standard.label}",
                    f'Your "{sa.standard.label}" standard is at {sa.score}% (observed '
                    f"{sa.label}). Below 50% is not drift, it's avoidance. This is the "
                    "gap the system was built to surface.",
                ))
    return alerts


# ---------------------------------------------------------------------------
# 4. No reflection
# ---------------------------------------------------------------------------

def rule_no_reflection(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """Never reflected, or the latest reflection is at least `stale_days` old."""
    if not state.reflections:
        return [make_alert(
            "no-reflection-ever",
            "warning",
            None,
            "No Reflections Recorded",
            "Self-awareness is the foundation of this system. Start with a morning "
            "reflection to set daily intentions.",
            "Reflect now",
        )]

    days = [d for d in (parse_day(r.date) for r in state.reflections) if d is not None]
    if not days:
        return []

    days_since = days_between(state.reference_day, max(days))
    if days_since >= cfg.reflection.stale_days:
        return [make_alert(
            "no-reflection-7d",
            "warning",
            None,
            f"No Reflection in {days_since} Days",
            f"You last reflected {days_since} days ago. The advisory layer loses "
            "accuracy without regular input. The system works when you work it.",
            "Reflect now",
        )]
    return []


# ---------------------------------------------------------------------------
# 5. Stale goal
# ---------------------------------------------------------------------------

def rule_goal_stale(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """Active goals past the staleness age with no completed milestone."""
    alerts: List[AlertCandidate] = []
    today = state.reference_day

    for goal in state.goals:
        if goal.status != "active":
            continue
        created = parse_day(goal.created_at)
        if created is None:
            continue
        age = days_between(today, created)
        if age < cfg.goal.stale_days:
            continue

        milestones = [m for m in state.milestones if m.goal_id == goal.id]
        if any(m.completed for m in milestones):
            continue

        alerts.append(make_alert(
            f"goal-stale-{goal.id}",
            "warning",
            goal.pillar_id,
            f"Stale Goal: {goal.title}",
            f'"{goal.title}" has been active for {age} days with no milestone progress. '
            "A goal without action is just a wish. Break it down or archive it.",
            "Review goal",
        ))
    return alerts


# ---------------------------------------------------------------------------
# 6. Value–behavior mismatch
# ---------------------------------------------------------------------------

def rule_value_behavior_mismatch(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """
    A declared core value whose matching pillar scores low.

    Matching is a case-insensitive substring test of each keyword against
    the pillar name, so "Healthy Boundaries" matches Health. That heuristic
    is kept as is.
    """
    if state.identity is None:
        return []

    table: Dict[str, Tuple[str, ...]] = {vk.value: vk.keywords for vk in cfg.value_keywords}
    alerts: List[AlertCandidate] = []

    for value in state.identity.core_values:
        keywords = table.get(value)
        if not keywords:
            continue
        for a in state.alignments:
            name = a.pillar_name.lower()
            if any(k in name for k in keywords) and a.score < cfg.value_mismatch.max_score:
                alerts.append(make_alert(
                    f"value-mismatch-{value}-{a.pillar_id}",
                    "challenge",
                    a.pillar_id,
                    f'Value-Behavior Gap: "{value}"',
                    f'You declared "{value}" as a core value, but your {a.pillar_name} '
                    f"pillar is at {a.score}%. If it's truly a value, your behavior should "
                    "reflect it. If it's aspirational, be honest about that.",
                ))
    return alerts


# ---------------------------------------------------------------------------
# 7. Overall regression
# ---------------------------------------------------------------------------

def rule_overall_regression(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """Mean current score well below the mean of every previous snapshot."""
    if not state.alignments or not state.previous_snapshots:
        return []

    current_avg = _mean_score(state.alignments)
    prev_avg = _mean_score(state.previous_snapshots)

    if current_avg < prev_avg - cfg.regression.margin:
        return [make_alert(
            "overall-regression",
            "challenge",
            None,
            "Overall Alignment Declining",
            f"Your overall score dropped from {round_half_up(prev_avg)} to "
            f"{round_half_up(current_avg)}. Multiple pillars are trending down. This "
            "isn't a bad day, it's a systemic pattern. Audit your commitments.",
            "Review all pillars",
        )]
    return []


# ---------------------------------------------------------------------------
# 8. Weekend mood drift
# ---------------------------------------------------------------------------

def rule_weekend_drift(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """Sunday-evening mood noticeably below the other evenings."""
    wt = cfg.weekend_drift
    rows = [
        {"date": r.date, "mood": r.mood}
        for r in state.reflections
        if r.type == wt.reflection_type
    ]
    if len(rows) < wt.min_reflections:
        return []

    df = pd.DataFrame(rows)
    df["day"] = pd.to_datetime(df["date"], format=DAY_FORMAT, errors="coerce")
    df = df.dropna(subset=["day"])

    is_sunday = df["day"].dt.dayofweek == SUNDAY
    sunday = df.loc[is_sunday, "mood"]
    other = df.loc[~is_sunday, "mood"]

    if len(sunday) < wt.min_sunday or len(other) < wt.min_other:
        return []

    sunday_avg = float(sunday.mean())
    other_avg = float(other.mean())

    if other_avg - sunday_avg > wt.mood_gap:
        return [make_alert(
            "weekend-drift",
            "insight",
            None,
            "Pattern: Sunday Mood Drop",
            f"Your average Sunday evening mood ({sunday_avg:.1f}) is significantly "
            f"lower than other days ({other_avg:.1f}). This may indicate anticipatory "
            "anxiety about the week ahead. Investigate.",
        )]
    return []


# ---------------------------------------------------------------------------
# 9. All aligned
# ---------------------------------------------------------------------------

def rule_all_aligned(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    at = cfg.all_aligned
    if len(state.alignments) < at.min_pillars:
        return []
    if all(a.score >= at.min_score for a in state.alignments):
        return [make_alert(
            "all-aligned",
            "opportunity",
            None,
            "All Pillars Aligned: Raise the Bar",
            "Every pillar is scoring above 80%. You're operating at a high level. "
            "Consider: raise your standards, add a new pillar, or shift seasons to "
            "Expansion or Domination.",
            "Review standards",
        )]
    return []


# ---------------------------------------------------------------------------
# 10. Season mismatch
# ---------------------------------------------------------------------------

def rule_season_mismatch(state: EngineState, cfg: MirrorConfig) -> List[AlertCandidate]:
    """An ambitious season declared on a weak overall base."""
    if not state.alignments:
        return []
    avg = _mean_score(state.alignments)

    for sr in cfg.season_rules:
        if state.current_season == sr.season and avg < sr.min_average:
            return [make_alert(
                sr.alert_id,
                "insight",
                None,
                sr.title,
                sr.message.format(avg=round_half_up(avg)),
                "Change season",
            )]
    return []


# ---------------------------------------------------------------------------
# Registry (order is stable for reproducible output)
# ---------------------------------------------------------------------------

RULES: Tuple[Tuple[str, Rule], ...] = (
    ("pillar_drift", rule_pillar_drift),
    ("streak_broken", rule_streak_broken),
    ("standard_violation", rule_standard_violation),
    ("no_reflection", rule_no_reflection),
    ("goal_stale", rule_goal_stale),
    ("value_behavior_mismatch", rule_value_behavior_mismatch),
    ("overall_regression", rule_overall_regression),
    ("weekend_drift", rule_weekend_drift),
    ("all_aligned", rule_all_aligned),
    ("season_mismatch", rule_season_mismatch),
)

"""
Streak calculator: consecutive-completion counts over habit logs.

All functions are pure and take the reference day explicitly.
Only logs with `completed=True` count; an explicit `completed=False`
and a missing row both break a streak.
"""

from datetime import date
from typing import Iterable, Set

from mirror.config import MirrorConfig
from mirror.dates import days_before, format_day, parse_day
from mirror.models import HabitLog


def completed_days(habit_id: int, logs: Iterable[HabitLog]) -> Set[str]:
    """ISO dates on which `habit_id` was logged completed."""
    return {log.date for log in logs if log.habit_id == habit_id and log.completed}


def streak_ending(habit_id: int, logs: Iterable[HabitLog], end_day: date) -> int:
    """
    Count consecutive completed days walking backward from `end_day`.

    Returns 0 when `end_day` itself was not completed.
    """
    done = completed_days(habit_id, logs)
    streak = 0
    current = end_day
    while format_day(current) in done:
        streak += 1
        current = days_before(current, 1)
    return streak


def calc_streak(habit_id: int, logs: Iterable[HabitLog], today: date) -> int:
    """
    Current streak ending today.

    Today may still be in progress, so when it is not yet completed the
    count starts from yesterday instead. Neither completed → 0.
    """
    logs = list(logs)
    done = completed_days(habit_id, logs)
    if format_day(today) in done:
        return streak_ending(habit_id, logs, today)
    return streak_ending(habit_id, logs, days_before(today, 1))


def calc_longest_streak(habit_id: int, logs: Iterable[HabitLog]) -> int:
    """Longest run of consecutive completed days ever logged."""
    days = sorted(
        day for day in (parse_day(d) for d in completed_days(habit_id, logs))
        if day is not None
    )
    if not days:
        return 0

    longest = 1
    current = 1
    for prev, curr in zip(days, days[1:]):
        if (curr - prev).days == 1:
            current += 1
            longest = max(longest, current)
        else:
            current = 1
    return longest


def weekly_rate(
    habit_id: int,
    target_days_per_week: int,
    logs: Iterable[HabitLog],
    today: date,
    cfg: MirrorConfig | None = None,
) -> float:
    """
    Completed share of the expected days over the trailing
    `cfg.windows.weekly_rate_weeks` weeks, capped at 1.
    """
    if cfg is None:
        cfg = MirrorConfig()
    weeks = cfg.windows.weekly_rate_weeks
    expected = target_days_per_week * weeks
    if expected <= 0:
        return 0.0
    cutoff = format_day(days_before(today, weeks * 7))
    completed = sum(
        1 for log in logs
        if log.habit_id == habit_id and log.completed and log.date >= cutoff
    )
    return min(1.0, completed / expected)

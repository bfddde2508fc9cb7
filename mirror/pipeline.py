"""
Pipeline orchestration: load → build state → align → evaluate → sync → report.

This is the only module that reads user data files. All analytical logic
is delegated to alignment, rules and engine; all alert bookkeeping to store.

Two entry points:
    evaluate(filepath)   → CLI mode (JSON file on disk)
    evaluate_data(data)  → backend mode (already-parsed dict)
"""

import json
import logging
from dataclasses import fields, replace
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from mirror.alignment import (
    compute_alignments,
    default_date_range,
    latest_snapshots,
    snapshot_period,
)
from mirror.config import SEASONS, SEVERITIES, MirrorConfig
from mirror.dates import parse_day, parse_timestamp
from mirror.engine import compute_alerts
from mirror.models import (
    EngineState,
    Goal,
    Habit,
    HabitLog,
    Identity,
    Milestone,
    PerformanceSnapshot,
    Pillar,
    PillarAlignment,
    Reflection,
    Standard,
    StandardAlignment,
)
from mirror.store import AlertStore


logger = logging.getLogger(__name__)


REQUIRED_SECTIONS = {"pillars"}

SEVERITY_HEADINGS = {
    "challenge": "Challenges",
    "warning": "Warnings",
    "opportunity": "Opportunities",
    "insight": "Insights",
}


# ---------------------------------------------------------------------------
# Data loading (CLI mode only)
# ---------------------------------------------------------------------------

def load_data(filepath: Union[str, Path]) -> Dict:
    """Load and validate a state bundle from a JSON file."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"State file not found: {path}")

    with open(path, "r") as f:
        data = json.load(f)

    _validate(data)
    return data


def _validate(data: Dict) -> None:
    if not data:
        raise ValueError("State bundle is empty")
    if not isinstance(data, dict):
        raise ValueError("State bundle must be a JSON object")

    missing = REQUIRED_SECTIONS - set(data)
    if missing:
        raise ValueError(f"Missing required sections: {missing}")

    season = data.get("current_season", "foundation")
    if season not in SEASONS:
        raise ValueError(f"Unknown season: {season!r}")


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------

def _build(cls, rows: Optional[List[Dict]]) -> List:
    """Instantiate `cls` from dict rows, ignoring keys it does not declare."""
    names = {f.name for f in fields(cls)}
    return [cls(**{k: v for k, v in row.items() if k in names}) for row in rows or []]


def _build_habits(rows) -> List[Habit]:
    return [
        replace(h, archived_at=parse_timestamp(h.archived_at))
        for h in _build(Habit, rows)
    ]


def _build_goals(rows) -> List[Goal]:
    return [
        replace(
            g,
            created_at=parse_timestamp(g.created_at),
            target_date=parse_day(g.target_date),
        )
        for g in _build(Goal, rows)
    ]


def _build_alignments(rows) -> List[PillarAlignment]:
    alignments = []
    for row in rows or []:
        standards = tuple(
            StandardAlignment(
                standard=_build(Standard, [sa["standard"]])[0],
                observed=sa.get("observed", 0.0),
                target=sa["target"],
                score=sa["score"],
                label=sa.get("label", ""),
            )
            for sa in row.get("standards", [])
        )
        (alignment,) = _build(PillarAlignment, [{**row, "standards": standards}])
        alignments.append(alignment)
    return alignments


def build_state(data: Dict, cfg: MirrorConfig | None = None) -> EngineState:
    """
    Turn a raw bundle into an EngineState.

    Alignments are taken from the bundle when present, otherwise computed
    over the default window. The snapshot baseline is the newest snapshot
    per pillar captured before the current month.
    """
    if cfg is None:
        cfg = MirrorConfig()

    today = parse_day(data.get("today")) or date.today()

    pillars = sorted(_build(Pillar, data.get("pillars")), key=lambda p: (p.order, p.id))
    habits = _build_habits(data.get("habits"))
    habit_logs = _build(HabitLog, data.get("habit_logs"))
    history = _build(PerformanceSnapshot, data.get("snapshots"))
    previous = latest_snapshots(history, before=snapshot_period(today))

    if data.get("alignments") is not None:
        alignments = _build_alignments(data["alignments"])
    else:
        alignments = compute_alignments(
            pillars=pillars,
            standards=_build(Standard, data.get("standards")),
            habits=habits,
            habit_logs=habit_logs,
            previous_snapshots=previous,
            date_range=default_date_range(today, cfg),
            today=today,
            cfg=cfg,
        )

    identity_row = data.get("identity")
    identity = _build(Identity, [identity_row])[0] if identity_row else None

    return EngineState(
        identity=identity,
        pillars=pillars,
        alignments=alignments,
        goals=_build_goals(data.get("goals")),
        milestones=_build(Milestone, data.get("milestones")),
        habits=habits,
        habit_logs=habit_logs,
        reflections=_build(Reflection, data.get("reflections")),
        previous_snapshots=previous,
        current_season=data.get("current_season", "foundation"),
        today=today,
    )


# ---------------------------------------------------------------------------
# Core evaluation (NO FILE I/O)
# ---------------------------------------------------------------------------

def _evaluate_state(
    state: EngineState,
    store: AlertStore,
    cfg: MirrorConfig,
    now: Optional[datetime],
) -> Dict:
    candidates = compute_alerts(state, cfg)
    created = store.bulk_sync(candidates, now=now)
    logger.info(
        "evaluated %d pillar(s): %d candidate(s), %d new, %d active",
        len(state.alignments),
        len(candidates),
        len(created),
        len(store.active_alerts()),
    )
    return {
        "today": state.reference_day.isoformat(),
        "season": state.current_season,
        "alignments": [
            {
                "pillar_id": a.pillar_id,
                "pillar_name": a.pillar_name,
                "score": a.score,
                "alignment_state": a.alignment_state,
                "trend": a.trend,
            }
            for a in state.alignments
        ],
        "candidates": [c.to_dict() for c in candidates],
        "new_alert_ids": [a.id for a in created],
        "active_alerts": [a.to_dict() for a in store.active_alerts()],
        "dismissed_count": len(store) - len(store.active_alerts()),
    }


# ---------------------------------------------------------------------------
# Public Entry Points
# ---------------------------------------------------------------------------

def evaluate_data(
    data: Dict,
    store: AlertStore | None = None,
    cfg: MirrorConfig | None = None,
    now: Optional[datetime] = None,
) -> Dict:
    """
    Backend / UI integration entry point.

    Accepts an already-parsed bundle. Syncs into `store` (a fresh
    in-memory store when omitted).
    """
    if cfg is None:
        cfg = MirrorConfig()
    if store is None:
        store = AlertStore()

    _validate(data)
    return _evaluate_state(build_state(data, cfg), store, cfg, now)


def evaluate(
    filepath: Union[str, Path],
    store_path: Union[str, Path, None] = None,
    cfg: MirrorConfig | None = None,
) -> Dict:
    """
    CLI-compatible entry point.

    Reads the bundle from disk; when `store_path` is given the alert store
    is loaded from and saved back to that file.
    """
    if cfg is None:
        cfg = MirrorConfig()

    data = load_data(filepath)
    store = AlertStore.load(store_path) if store_path else AlertStore()
    result = _evaluate_state(build_state(data, cfg), store, cfg, None)
    if store_path:
        store.save(store_path)
    return result


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------

def generate_report(result: Dict) -> str:
    """Format the evaluation result as a human-readable text report."""
    lines = [
        "MIRROR ADVISORY REPORT",
        "=" * 58,
        "",
        f"  Date                : {result['today']}",
        f"  Season              : {result['season']}",
        f"  Active Alerts       : {len(result['active_alerts'])}"
        f" ({result['dismissed_count']} dismissed)",
        "",
        "  Pillar Alignment:",
    ]

    for a in result["alignments"]:
        lines.append(
            f"    {a['pillar_name']:15s} : {a['score']:>3}  "
            f"{a['alignment_state']:10s} (trend: {a['trend']})"
        )

    for severity in SEVERITIES:
        alerts = [a for a in result["active_alerts"] if a["severity"] == severity]
        if not alerts:
            continue
        lines.append("")
        lines.append(f"  {SEVERITY_HEADINGS[severity]}:")
        for alert in alerts:
            lines.append(f"    - {alert['title']}")
            lines.append(f"      {alert['message']}")
            if alert["action"]:
                lines.append(f"      → {alert['action']}")

    if not result["active_alerts"]:
        lines.append("")
        lines.append("  No active alerts.")

    lines.append("")
    lines.append("=" * 58)
    return "\n".join(lines)

"""
MIRROR — Alignment-to-Advisory Rule Engine

A deterministic, rule-based evaluator that compares what a person declared
(pillars, standards, core values, season) with what they actually did
(habit logs, reflections, goal progress) and produces severity-tagged
advisory alerts.

Architecture:
    config     — All thresholds, windows and lookup tables (single source of truth)
    models     — Declared/observed records, alignment readings, alerts, state bundle
    dates      — Calendar-day parsing and arithmetic
    streaks    — Consecutive-completion streaks over habit logs
    alignment  — Per-pillar 0–100 alignment scores and snapshot history
    rules      — The ten advisory rules and their ordered registry
    engine     — compute_alerts: apply every rule, concatenate
    store      — Id-keyed alert store with dismissal-preserving sync
    pipeline   — Orchestration: load → align → evaluate → sync → report

Public API:
    compute_alerts(state)   → pure rule evaluation
    evaluate(filepath)      → CLI mode
    evaluate_data(data)     → UI / backend mode
    generate_report(result) → formatted report
"""

from mirror.engine import compute_alerts
from mirror.pipeline import evaluate, evaluate_data, generate_report
from mirror.store import AlertStore

__version__ = "1.0.0"

__all__ = ["compute_alerts", "evaluate", "evaluate_data", "generate_report", "AlertStore"]

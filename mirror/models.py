"""
Data model: declared state, observed behavior, alignment readings, alerts.

Inputs to the engine are frozen dataclasses; the only mutable record is
the persisted AdvisoryAlert, whose `dismissed_at` a user may set.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Tuple


# ---------------------------------------------------------------------------
# Declared state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Identity:
    core_values: Tuple[str, ...] = ()
    vision_statement: str = ""
    mission_statement: str = ""
    coach_tone: str = "adaptive"
    personality_type: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "core_values", tuple(self.core_values))


@dataclass(frozen=True)
class Pillar:
    id: int
    name: str
    color: str = ""
    order: int = 0


@dataclass(frozen=True)
class Standard:
    id: int
    pillar_id: int
    label: str
    target: float
    unit: str = ""


# ---------------------------------------------------------------------------
# Observed behavior
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Habit:
    id: int
    title: str
    pillar_id: Optional[int] = None
    target_days_per_week: int = 7
    archived_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.archived_at is None


@dataclass(frozen=True)
class HabitLog:
    """One row per (habit_id, date). No row means "not logged"."""

    id: int
    habit_id: int
    date: str
    completed: bool
    note: str = ""


@dataclass(frozen=True)
class Reflection:
    id: int
    type: str
    date: str
    responses: Dict[str, str] = field(default_factory=dict)
    energy_level: int = 5
    mood: int = 5


@dataclass(frozen=True)
class Goal:
    id: int
    title: str
    created_at: datetime
    pillar_id: Optional[int] = None
    status: str = "active"
    target_date: Optional[date] = None


@dataclass(frozen=True)
class Milestone:
    id: int
    goal_id: int
    completed: bool = False
    completed_at: Optional[datetime] = None


# ---------------------------------------------------------------------------
# Alignment readings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StandardAlignment:
    standard: Standard
    observed: float
    target: float
    score: int
    label: str


@dataclass(frozen=True)
class PillarAlignment:
    """
    One pillar's alignment reading.

    score is in [0, 100]; trend and alignment_state derive from score and
    the snapshot history only, never from the rules.
    """

    pillar_id: int
    pillar_name: str
    score: int
    pillar_color: str = ""
    alignment_state: str = "avoiding"
    trend: str = "flat"
    habit_count: int = 0
    completed_habit_count: int = 0
    standards: Tuple[StandardAlignment, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "standards", tuple(self.standards))


@dataclass(frozen=True)
class PerformanceSnapshot:
    pillar_id: int
    score: int
    captured_at: str


# ---------------------------------------------------------------------------
# Alerts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AlertCandidate:
    """What a rule emits: everything but the store-managed timestamps."""

    id: str
    severity: str
    pillar_id: Optional[int]
    title: str
    message: str
    action: Optional[str] = None

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class AdvisoryAlert:
    id: str
    severity: str
    pillar_id: Optional[int]
    title: str
    message: str
    action: Optional[str]
    created_at: datetime
    dismissed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.dismissed_at is None

    @classmethod
    def from_candidate(cls, candidate: AlertCandidate, created_at: datetime) -> "AdvisoryAlert":
        return cls(created_at=created_at, dismissed_at=None, **candidate.to_dict())

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["dismissed_at"] = self.dismissed_at.isoformat() if self.dismissed_at else None
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "AdvisoryAlert":
        dismissed = data.get("dismissed_at")
        return cls(
            id=data["id"],
            severity=data["severity"],
            pillar_id=data.get("pillar_id"),
            title=data["title"],
            message=data["message"],
            action=data.get("action"),
            created_at=datetime.fromisoformat(data["created_at"]),
            dismissed_at=datetime.fromisoformat(dismissed) if dismissed else None,
        )


# ---------------------------------------------------------------------------
# Engine input bundle
# ---------------------------------------------------------------------------

_SEQUENCE_FIELDS = (
    "pillars",
    "alignments",
    "goals",
    "milestones",
    "habits",
    "habit_logs",
    "reflections",
    "previous_snapshots",
)


@dataclass(frozen=True)
class EngineState:
    """
    Everything the rules may look at, frozen for the duration of one evaluation.

    `today` pins the reference day; leave it unset to use the system date.
    """

    identity: Optional[Identity] = None
    pillars: Tuple[Pillar, ...] = ()
    alignments: Tuple[PillarAlignment, ...] = ()
    goals: Tuple[Goal, ...] = ()
    milestones: Tuple[Milestone, ...] = ()
    habits: Tuple[Habit, ...] = ()
    habit_logs: Tuple[HabitLog, ...] = ()
    reflections: Tuple[Reflection, ...] = ()
    previous_snapshots: Tuple[PerformanceSnapshot, ...] = ()
    current_season: str = "foundation"
    today: Optional[date] = None

    def __post_init__(self):
        for name in _SEQUENCE_FIELDS:
            object.__setattr__(self, name, tuple(getattr(self, name) or ()))

    @property
    def reference_day(self) -> date:
        return self.today if self.today is not None else date.today()

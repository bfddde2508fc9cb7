"""
Centralized configuration for all rule thresholds, windows, and lookup tables.

Every tunable constant lives here. Rules read their cutoffs from the
dataclass for their family, so a stricter or looser advisory profile is
a matter of passing a different MirrorConfig.
"""

from dataclasses import dataclass, field


SEVERITIES = ("challenge", "warning", "opportunity", "insight")

SEASONS = (
    "foundation",
    "expansion",
    "domination",
    "exploration",
    "recovery",
    "reinvention",
)


# ---------------------------------------------------------------------------
# Rule thresholds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DriftThresholds:
    """Per-pillar drop against the previous snapshot (strictly greater than)."""

    max_drop: float = 20.0


@dataclass(frozen=True)
class StreakThresholds:
    """A broken streak shorter than this is noise, not an alert."""

    min_broken_streak: int = 7


@dataclass(frozen=True)
class StandardThresholds:
    """Standard score below `violation_score` with a positive target violates."""

    violation_score: float = 50.0
    min_target: float = 0.0


@dataclass(frozen=True)
class ReflectionThresholds:
    """Days without any reflection before the staleness warning fires."""

    stale_days: int = 7


@dataclass(frozen=True)
class GoalThresholds:
    """Age (days since creation) at which an active goal without progress is stale."""

    stale_days: int = 90


@dataclass(frozen=True)
class ValueMismatchThresholds:
    """Pillar score below which a declared value is contradicted."""

    max_score: float = 40.0


@dataclass(frozen=True)
class RegressionThresholds:
    """Mean current score must fall more than `margin` below the snapshot mean."""

    margin: float = 10.0


@dataclass(frozen=True)
class WeekendDriftThresholds:
    """
    Sunday-evening mood comparison.

    All three sample-size floors are independently required before
    the mood gap is even computed.
    """

    reflection_type: str = "daily-pm"
    min_reflections: int = 4
    min_sunday: int = 2
    min_other: int = 2
    mood_gap: float = 2.0


@dataclass(frozen=True)
class AllAlignedThresholds:
    """Every pillar at or above `min_score`, with at least `min_pillars` pillars."""

    min_score: float = 80.0
    min_pillars: int = 2


# ---------------------------------------------------------------------------
# Alignment provider parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AlignmentParams:
    """Score bands for alignment state and the snapshot delta for trend labels."""

    aligned: float = 80.0
    improving: float = 60.0
    drifting: float = 40.0
    trend_delta: float = 5.0

    def __post_init__(self):
        if not (self.drifting <= self.improving <= self.aligned):
            raise ValueError(
                "Alignment bands must satisfy drifting <= improving <= aligned, "
                f"got {self.drifting}/{self.improving}/{self.aligned}"
            )


@dataclass(frozen=True)
class WindowParams:
    """Day windows for the current and previous alignment periods."""

    period_days: int = 28
    weekly_rate_weeks: int = 4

    def __post_init__(self):
        if self.period_days < 1 or self.weekly_rate_weeks < 1:
            raise ValueError("Windows must be at least one day / one week long")


# ---------------------------------------------------------------------------
# Declarative tables
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValueKeywords:
    """A core value and the pillar-name fragments that are taken to express it."""

    value: str
    keywords: tuple


DEFAULT_VALUE_KEYWORDS: tuple = (
    ValueKeywords("Health", ("health", "fitness", "body", "physical")),
    ValueKeywords("Wealth", ("finance", "money", "wealth", "financial")),
    ValueKeywords("Growth", ("learning", "growth", "education", "development")),
    ValueKeywords("Mastery", ("learning", "mastery", "craft", "skill")),
    ValueKeywords("Family", ("family", "relationships", "partner", "social")),
    ValueKeywords("Discipline", ("health", "fitness", "habits")),
    ValueKeywords("Creativity", ("creative", "creativity", "art", "design")),
)


@dataclass(frozen=True)
class SeasonRule:
    """An ambitious season that needs an average score of at least `min_average`."""

    season: str
    min_average: float
    alert_id: str
    title: str
    message: str


DEFAULT_SEASON_RULES: tuple = (
    SeasonRule(
        season="domination",
        min_average=50.0,
        alert_id="season-mismatch",
        title="Season Mismatch: Domination Mode",
        message=(
            "You're in Domination season but your overall score is {avg}%. "
            "Domination assumes a strong foundation. Consider switching to "
            "Foundation or Recovery until your base is solid."
        ),
    ),
    SeasonRule(
        season="expansion",
        min_average=40.0,
        alert_id="season-mismatch-expansion",
        title="Season Mismatch: Expansion Mode",
        message=(
            "You're in Expansion season but your overall score is {avg}%. "
            "You can't expand from a crumbling base. Stabilize first."
        ),
    ),
)


# ---------------------------------------------------------------------------
# Top-level config aggregate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MirrorConfig:
    """Complete engine configuration. Pass to any entry point to override defaults."""

    drift: DriftThresholds = field(default_factory=DriftThresholds)
    streak: StreakThresholds = field(default_factory=StreakThresholds)
    standard: StandardThresholds = field(default_factory=StandardThresholds)
    reflection: ReflectionThresholds = field(default_factory=ReflectionThresholds)
    goal: GoalThresholds = field(default_factory=GoalThresholds)
    value_mismatch: ValueMismatchThresholds = field(default_factory=ValueMismatchThresholds)
    regression: RegressionThresholds = field(default_factory=RegressionThresholds)
    weekend_drift: WeekendDriftThresholds = field(default_factory=WeekendDriftThresholds)
    all_aligned: AllAlignedThresholds = field(default_factory=AllAlignedThresholds)
    alignment: AlignmentParams = field(default_factory=AlignmentParams)
    windows: WindowParams = field(default_factory=WindowParams)
    value_keywords: tuple = DEFAULT_VALUE_KEYWORDS
    season_rules: tuple = DEFAULT_SEASON_RULES

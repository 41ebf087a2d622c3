"""
Data models for cube-scheduler.

Enumerations and dataclasses shared by the scheduler, the JIT pipeline and
the strategy layer.  Everything here is an in-memory value; persistence is
the caller's concern.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Literal

from .blocks import DEFAULT_FORMULA_CONFIG, FormulaConfig
from .errors import InvalidInputError

Sex = Literal["male", "female"]


# =============================================================================
# Enumerations
# =============================================================================


class Lift(str, Enum):
    SQUAT = "squat"
    BENCH = "bench"
    DEADLIFT = "deadlift"


class IntensityType(str, Enum):
    HEAVY = "heavy"
    EXPLOSIVE = "explosive"
    REP = "rep"
    DELOAD = "deload"


class Severity(str, Enum):
    """Disruption severity; totally ordered via rank."""

    MINOR = "minor"
    MODERATE = "moderate"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        if self is Severity.MINOR:
            return 1
        if self is Severity.MODERATE:
            return 2
        return 3


class DisruptionType(str, Enum):
    INJURY = "injury"
    ILLNESS = "illness"
    TRAVEL = "travel"
    FATIGUE = "fatigue"
    EQUIPMENT_UNAVAILABLE = "equipment_unavailable"
    UNPROGRAMMED_EVENT = "unprogrammed_event"
    OTHER = "other"


class DisruptionStatus(str, Enum):
    ACTIVE = "active"
    MONITORING = "monitoring"
    RESOLVED = "resolved"


class MuscleGroup(str, Enum):
    QUADS = "quads"
    HAMSTRINGS = "hamstrings"
    GLUTES = "glutes"
    LOWER_BACK = "lower_back"
    UPPER_BACK = "upper_back"
    CHEST = "chest"
    TRICEPS = "triceps"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"


class SorenessLevel(IntEnum):
    FRESH = 1
    MILD = 2
    MODERATE = 3
    HIGH = 4
    SEVERE = 5


class VolumeStatus(str, Enum):
    BELOW_MEV = "below_mev"
    IN_RANGE = "in_range"
    APPROACHING_MRV = "approaching_mrv"
    AT_MRV = "at_mrv"
    EXCEEDED_MRV = "exceeded_mrv"


class StrategyTag(str, Enum):
    """Which strategy produced a JITOutput."""

    FORMULA = "formula"
    ADVISORY = "advisory"
    FORMULA_FALLBACK = "formula_fallback"


# =============================================================================
# Sets
# =============================================================================


@dataclass(frozen=True)
class PlannedSet:
    """
    One prescribed working set.

    reps_range is set when the prescription allows a band of reps; reps is
    then the floor of that band.
    """

    set_number: int
    weight_kg: float
    reps: int
    rpe_target: float
    reps_range: tuple[int, int] | None = None

    def __post_init__(self) -> None:
        """Validate planned set data."""
        if self.set_number < 1:
            raise InvalidInputError("set_number must be >= 1")
        if self.weight_kg < 0:
            raise InvalidInputError("weight_kg must be non-negative")
        if self.reps < 1:
            raise InvalidInputError("reps must be >= 1")
        if self.reps_range is not None and self.reps_range[0] > self.reps_range[1]:
            raise InvalidInputError("reps_range must be (min, max) with min <= max")


@dataclass(frozen=True)
class WarmupStep:
    """One rung of a warmup protocol; pct == 0 means the empty bar."""

    pct: float
    reps: int

    def __post_init__(self) -> None:
        if not 0 <= self.pct <= 1:
            raise InvalidInputError(f"warmup pct must be in [0, 1], got {self.pct}")
        if self.reps < 1:
            raise InvalidInputError("warmup reps must be >= 1")


@dataclass(frozen=True)
class WarmupProtocol:
    """
    Either a named preset or an explicit list of steps.

    Exactly one of preset / steps is set.
    """

    preset: str | None = "standard"
    steps: tuple[WarmupStep, ...] | None = None

    def __post_init__(self) -> None:
        if (self.preset is None) == (self.steps is None):
            raise InvalidInputError("WarmupProtocol needs exactly one of preset or steps")
        if self.steps is not None and len(self.steps) == 0:
            raise InvalidInputError("custom warmup protocol needs at least one step")

    @classmethod
    def named(cls, name: str) -> "WarmupProtocol":
        return cls(preset=name, steps=None)

    @classmethod
    def custom(cls, steps: list[WarmupStep]) -> "WarmupProtocol":
        return cls(preset=None, steps=tuple(steps))


@dataclass(frozen=True)
class WarmupSet:
    set_number: int
    weight_kg: float
    display_weight: str  # "20 kg (bar)" for the empty bar
    reps: int
    is_warmup: bool = True


@dataclass(frozen=True)
class AuxiliaryWork:
    exercise: str
    sets: list[PlannedSet]
    skipped: bool
    skip_reason: str | None = None


# =============================================================================
# Schedule
# =============================================================================


@dataclass(frozen=True)
class SessionScaffold:
    """
    One scheduled session, created at program-creation time.

    Carries no load information: planned_sets and jit_generated_at are
    always None here and are filled in by the session-tracking layer.
    """

    week_number: int
    day_number: int
    lift: Lift
    intensity_type: IntensityType
    block_number: int | None  # None for the deload week
    is_deload: bool
    planned_date: date
    planned_sets: None = None
    jit_generated_at: None = None


@dataclass(frozen=True)
class AuxiliaryAssignment:
    block_number: int
    lift: Lift
    exercise1: str
    exercise2: str


@dataclass(frozen=True)
class ProgramRecord:
    """Summary of a prior program used to advance the auxiliary rotation."""

    completed_blocks: int

    def __post_init__(self) -> None:
        if self.completed_blocks < 0:
            raise InvalidInputError("completed_blocks must be non-negative")


@dataclass(frozen=True)
class SessionRef:
    """Minimal reference to a scheduled session for makeup-window checks."""

    id: str
    scheduled_date: date
    lift: Lift
    week_number: int


# =============================================================================
# Volume
# =============================================================================


@dataclass(frozen=True)
class MuscleVolumeLimits:
    """Weekly MEV / MRV for one muscle, in set-equivalents."""

    mev: float
    mrv: float

    def __post_init__(self) -> None:
        if self.mev < 0 or self.mrv < 0:
            raise InvalidInputError("mev and mrv must be non-negative")
        if self.mev > self.mrv:
            raise InvalidInputError(f"mev ({self.mev}) must be <= mrv ({self.mrv})")


MrvMevConfig = dict[MuscleGroup, MuscleVolumeLimits]


@dataclass(frozen=True)
class MuscleContribution:
    muscle: MuscleGroup
    contribution: float  # 1.0 primary, 0.5 secondary


@dataclass(frozen=True)
class CompletedSetLog:
    lift: Lift
    completed_sets: int
    exercise: str | None = None

    def __post_init__(self) -> None:
        if self.completed_sets < 0:
            raise InvalidInputError("completed_sets must be non-negative")


# =============================================================================
# Adjustment inputs
# =============================================================================


@dataclass(frozen=True)
class SorenessModifier:
    set_reduction: int
    intensity_multiplier: float
    recovery_mode: bool
    warning: str | None


@dataclass(frozen=True)
class TrainingDisruption:
    """
    An external event that overrides normal prescription logic.

    affected_lifts None means every lift.  affected_date_end None means the
    disruption is still open.
    """

    disruption_type: DisruptionType
    severity: Severity
    affected_lifts: tuple[Lift, ...] | None = None
    description: str | None = None
    affected_date_start: date | None = None
    affected_date_end: date | None = None
    status: DisruptionStatus = DisruptionStatus.ACTIVE

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "disruption_type", DisruptionType(self.disruption_type))
            object.__setattr__(self, "severity", Severity(self.severity))
            object.__setattr__(self, "status", DisruptionStatus(self.status))
            if self.affected_lifts is not None:
                object.__setattr__(self, "affected_lifts", tuple(Lift(x) for x in self.affected_lifts))
        except ValueError as e:
            raise InvalidInputError(str(e)) from e
        if (
            self.affected_date_start is not None
            and self.affected_date_end is not None
            and self.affected_date_end < self.affected_date_start
        ):
            raise InvalidInputError("affected_date_end must not precede affected_date_start")

    @property
    def is_active(self) -> bool:
        return self.status is not DisruptionStatus.RESOLVED

    def covers(self, day: date) -> bool:
        """True if the disruption's date range includes day."""
        if self.affected_date_start is not None and day < self.affected_date_start:
            return False
        if self.affected_date_end is not None and day > self.affected_date_end:
            return False
        return True


@dataclass(frozen=True)
class RecentSessionSummary:
    """RPE outcome of a recent session for the same lift/intensity, most recent first."""

    actual_rpe: float | None
    target_rpe: float


@dataclass(frozen=True)
class SessionLogSummary:
    session_id: str
    lift: Lift
    intensity_type: IntensityType
    actual_rpe: float | None
    target_rpe: float
    completion_pct: float | None = None


@dataclass(frozen=True)
class RestOverride:
    """User rest preference; unset lift / intensity_type acts as a wildcard."""

    rest_seconds: int
    lift: Lift | None = None
    intensity_type: IntensityType | None = None

    def __post_init__(self) -> None:
        if self.rest_seconds <= 0:
            raise InvalidInputError("rest_seconds must be positive")
        try:
            if self.lift is not None:
                object.__setattr__(self, "lift", Lift(self.lift))
            if self.intensity_type is not None:
                object.__setattr__(self, "intensity_type", IntensityType(self.intensity_type))
        except ValueError as e:
            raise InvalidInputError(str(e)) from e


# =============================================================================
# Suggestions
# =============================================================================


@dataclass(frozen=True)
class PerformanceSuggestion:
    type: Literal["reduce_pct", "increase_pct", "flag_for_review"]
    affected_lift: Lift
    affected_intensity_type: IntensityType | None
    pct_adjustment: float | None
    rationale: str
    session_id: str | None = None
    completion_pct: float | None = None


@dataclass(frozen=True)
class PlannedSessionRef:
    id: str
    lift: Lift
    status: str = "planned"


@dataclass(frozen=True)
class DisruptionAdjustmentSuggestion:
    session_id: str
    action: Literal["weight_reduced", "reps_reduced", "session_skipped", "exercise_substituted"]
    rationale: str
    reduction_pct: int | None = None
    reps_reduction: int | None = None
    substitution_note: str | None = None


# =============================================================================
# JIT request / response
# =============================================================================


def _default_auxiliaries() -> tuple[str, str]:
    return ("", "")


@dataclass(frozen=True)
class JITInput:
    """
    Everything the JIT pipeline needs to prescribe one session.

    one_rm_kg and formula_config arrive fully resolved; mrv_mev_config may be
    partial (missing muscles fall back to the system defaults).
    """

    lift: Lift
    intensity_type: IntensityType
    block_number: int
    one_rm_kg: float
    session_id: str = ""
    week_number: int = 1
    formula_config: FormulaConfig = DEFAULT_FORMULA_CONFIG
    soreness_ratings: dict[MuscleGroup, SorenessLevel] = field(default_factory=dict)
    weekly_volume_to_date: dict[MuscleGroup, float] = field(default_factory=dict)
    mrv_mev_config: MrvMevConfig = field(default_factory=dict)
    active_auxiliaries: tuple[str, ...] = field(default_factory=_default_auxiliaries)
    recent_logs: list[RecentSessionSummary] = field(default_factory=list)
    active_disruptions: list[TrainingDisruption] = field(default_factory=list)
    warmup_config: WarmupProtocol = field(default_factory=WarmupProtocol)
    days_since_last_session: int | None = None
    biological_sex: Sex | None = None
    user_age: int | None = None
    user_rest_overrides: list[RestOverride] = field(default_factory=list)
    session_date: date | None = None

    def __post_init__(self) -> None:
        """Validate request data."""
        try:
            object.__setattr__(self, "lift", Lift(self.lift))
            object.__setattr__(self, "intensity_type", IntensityType(self.intensity_type))
        except ValueError as e:
            raise InvalidInputError(str(e)) from e
        if self.one_rm_kg <= 0:
            raise InvalidInputError(f"one_rm_kg must be positive, got {self.one_rm_kg}")
        if self.block_number not in (1, 2, 3):
            raise InvalidInputError(f"block_number must be 1, 2 or 3, got {self.block_number}")
        if self.week_number < 1:
            raise InvalidInputError("week_number must be >= 1")
        for muscle, level in self.soreness_ratings.items():
            if int(level) not in range(1, 6):
                raise InvalidInputError(f"soreness for {muscle} must be 1-5, got {level}")
        for muscle, sets in self.weekly_volume_to_date.items():
            if sets < 0:
                raise InvalidInputError(f"weekly volume for {muscle} must be non-negative")
        # Muscle keys may arrive as plain strings; enum members hash differently
        try:
            object.__setattr__(
                self,
                "soreness_ratings",
                {MuscleGroup(m): SorenessLevel(int(v)) for m, v in self.soreness_ratings.items()},
            )
            object.__setattr__(
                self,
                "weekly_volume_to_date",
                {MuscleGroup(m): v for m, v in self.weekly_volume_to_date.items()},
            )
            object.__setattr__(
                self,
                "mrv_mev_config",
                {MuscleGroup(m): v for m, v in self.mrv_mev_config.items()},
            )
        except ValueError as e:
            raise InvalidInputError(str(e)) from e
        object.__setattr__(self, "active_auxiliaries", tuple(self.active_auxiliaries))
        if self.biological_sex not in (None, "male", "female"):
            raise InvalidInputError(f"biological_sex must be 'male' or 'female', got {self.biological_sex!r}")


@dataclass(frozen=True)
class RestRecommendations:
    """Rest in seconds: one entry per main working set and one per auxiliary exercise."""

    main_lift: list[int] = field(default_factory=list)
    auxiliary: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class AdvisoryRestSuggestion:
    delta_seconds: int  # Clamped delta applied on top of the formula base
    formula_base_seconds: int


@dataclass(frozen=True)
class Divergence:
    weight_pct: float  # |advisory - formula| / formula, first working set
    set_delta: int  # advisory sets - formula sets
    rpe_context_summary: str  # First advisory rationale line


@dataclass(frozen=True)
class ComparisonData:
    divergence: Divergence
    formula_output: "JITOutput"
    should_surface_to_user: bool


@dataclass(frozen=True)
class JITOutput:
    """
    A session prescription.  Never mutated; strategies derive new outputs
    with dataclasses.replace().
    """

    session_id: str
    generated_at: datetime
    main_lift_sets: list[PlannedSet]
    warmup_sets: list[WarmupSet]
    auxiliary_work: list[AuxiliaryWork]
    volume_modifier: float
    intensity_modifier: float
    rationale: list[str]
    warnings: list[str]
    skipped_main_lift: bool
    rest_recommendations: RestRecommendations = field(default_factory=RestRecommendations)
    recovery_mode: bool = False
    strategy: StrategyTag | None = None
    advisory_rest_suggestion: AdvisoryRestSuggestion | None = None
    comparison: ComparisonData | None = None

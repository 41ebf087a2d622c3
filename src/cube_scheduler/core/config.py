"""
Configuration constants for the cube-method planning engine.

All adjustable parameters of the JIT pipeline, the constraint enforcer and
the strategy layer are centralized here for easy tuning.  Per-block formula
tables live in blocks.py; these are the scalar knobs around them.
"""

from typing import Final

# =============================================================================
# WEIGHT ROUNDING
# =============================================================================

DEFAULT_ROUNDING_INCREMENT_KG: Final[float] = 2.5  # Smallest plate pair step
BAR_WEIGHT_KG: Final[float] = 20.0  # Empty barbell; floor for warmup and recovery sets
KG_PER_LB: Final[float] = 0.45359237

# =============================================================================
# ONE-REP-MAX ESTIMATION
# =============================================================================

ONE_RM_MIN_REPS: Final[int] = 1
ONE_RM_MAX_REPS: Final[int] = 20  # Estimation formulas degrade beyond this

# =============================================================================
# PERFORMANCE TREND (JIT step 2)
# =============================================================================

TREND_RPE_DEVIATION_THRESHOLD: Final[float] = 1.0  # Strictly greater than
TREND_SESSIONS_REQUIRED: Final[int] = 2
TREND_INTENSITY_STEP: Final[float] = 0.025  # ±2.5 % per detected trend

# =============================================================================
# SORENESS RECOVERY MODE (JIT step 3)
# =============================================================================

RECOVERY_MODE_PCT: Final[float] = 0.40  # Fraction of the session's base weight
RECOVERY_MODE_SETS: Final[int] = 3
RECOVERY_MODE_REPS: Final[int] = 5
RECOVERY_MODE_RPE: Final[float] = 5.0
MIN_WORKING_SETS: Final[int] = 1

# =============================================================================
# DISRUPTION OVERRIDE (JIT step 5)
# =============================================================================

MODERATE_DISRUPTION_INTENSITY: Final[float] = 0.90

# =============================================================================
# AUXILIARY WORK (JIT step 6)
# =============================================================================

AUX_BASE_SETS: Final[int] = 3
AUX_PCT_OF_1RM: Final[float] = 0.675
AUX_REPS_MALE: Final[int] = 10
AUX_REPS_FEMALE: Final[int] = 12
AUX_RPE_TARGET: Final[float] = 7.5
AUX_HIGH_SORENESS_INTENSITY: Final[float] = 0.95  # Applied at soreness level 4
AUX_ADVISORY_REDUCE_INTENSITY: Final[float] = 0.90
AUX_ADVISORY_REDUCE_SETS: Final[int] = 2

# =============================================================================
# WARMUP (JIT step 7)
# =============================================================================

LIGHT_LOAD_THRESHOLD_KG: Final[float] = 40.0  # Below this the minimal protocol is used

# =============================================================================
# HARD CONSTRAINTS
# =============================================================================

CONSTRAINT_WEIGHT_FLOOR_PCT: Final[float] = 0.40  # Fraction of the formula baseline weight

# =============================================================================
# ADVISORY STRATEGY BOUNDS
# =============================================================================

ADVISORY_TIMEOUT_SECONDS: Final[float] = 5.0
ADVISORY_INTENSITY_MIN: Final[float] = 0.40
ADVISORY_INTENSITY_MAX: Final[float] = 1.20
ADVISORY_SET_DELTA_MIN: Final[int] = -3
ADVISORY_SET_DELTA_MAX: Final[int] = 2
ADVISORY_RATIONALE_MAX_ITEMS: Final[int] = 5
ADVISORY_RATIONALE_MAX_CHARS: Final[int] = 200
ADVISORY_REST_DELTA_MAX_SECONDS: Final[int] = 60

# =============================================================================
# HYBRID DIVERGENCE
# =============================================================================

DIVERGENCE_AGREEMENT_PCT: Final[float] = 0.10  # At or below: strategies agree
DIVERGENCE_SURFACE_PCT: Final[float] = 0.15  # Above: surface to the user

# =============================================================================
# VOLUME STATUS
# =============================================================================

APPROACHING_MRV_MARGIN: Final[int] = 2  # Sets below MRV that count as "approaching"

# =============================================================================
# PROGRAM PERFORMANCE SUGGESTIONS
# =============================================================================

INCOMPLETE_SESSION_THRESHOLD_PCT: Final[float] = 80.0

"""
Volume capacity tracker.

Accumulates completed sets into weekly per-muscle volume (set-equivalents),
classifies each muscle against MEV / MRV and reports remaining capacity.
"""

import math
from typing import Callable, Iterable

from .config import APPROACHING_MRV_MARGIN
from .models import (
    CompletedSetLog,
    Lift,
    MrvMevConfig,
    MuscleContribution,
    MuscleGroup,
    MuscleVolumeLimits,
    VolumeStatus,
)
from .muscles import get_muscles_for_lift

MuscleMapper = Callable[[Lift, str | None], list[MuscleContribution]]

DEFAULT_MRV_MEV_CONFIG: MrvMevConfig = {
    MuscleGroup.QUADS: MuscleVolumeLimits(mev=8, mrv=20),
    MuscleGroup.HAMSTRINGS: MuscleVolumeLimits(mev=6, mrv=20),
    MuscleGroup.GLUTES: MuscleVolumeLimits(mev=0, mrv=16),
    MuscleGroup.LOWER_BACK: MuscleVolumeLimits(mev=6, mrv=12),
    MuscleGroup.UPPER_BACK: MuscleVolumeLimits(mev=10, mrv=22),
    MuscleGroup.CHEST: MuscleVolumeLimits(mev=8, mrv=22),
    MuscleGroup.TRICEPS: MuscleVolumeLimits(mev=6, mrv=20),
    MuscleGroup.SHOULDERS: MuscleVolumeLimits(mev=8, mrv=20),
    MuscleGroup.BICEPS: MuscleVolumeLimits(mev=8, mrv=20),
}


def get_limits(config: MrvMevConfig | None, muscle: MuscleGroup) -> MuscleVolumeLimits:
    """Limits for a muscle, falling back to the system default when unset."""
    if config and muscle in config:
        return config[muscle]
    return DEFAULT_MRV_MEV_CONFIG[muscle]


def merge_mrv_mev_config(overrides: MrvMevConfig | None) -> MrvMevConfig:
    """Full config with every muscle present; overrides win per muscle."""
    return {muscle: get_limits(overrides, muscle) for muscle in MuscleGroup}


def compute_weekly_volume(
    session_logs: Iterable[CompletedSetLog],
    muscle_mapper: MuscleMapper = get_muscles_for_lift,
) -> dict[MuscleGroup, int]:
    """
    Sum completed sets × contribution per muscle for one week.

    Fractional totals from secondary contributions are floored, so
    3 sets at 0.5 counts as 1 set-equivalent.
    """
    raw: dict[MuscleGroup, float] = {m: 0.0 for m in MuscleGroup}
    for log in session_logs:
        for mc in muscle_mapper(log.lift, log.exercise):
            raw[mc.muscle] += log.completed_sets * mc.contribution
    return {m: math.floor(v) for m, v in raw.items()}


def volume_status(sets: float, limits: MuscleVolumeLimits) -> VolumeStatus:
    """
    Classify one muscle's weekly volume.

    > MRV exceeded, == MRV at, within APPROACHING_MRV_MARGIN of MRV
    approaching, >= MEV in range, otherwise below MEV.
    """
    if sets > limits.mrv:
        return VolumeStatus.EXCEEDED_MRV
    if sets == limits.mrv:
        return VolumeStatus.AT_MRV
    if limits.mrv - sets <= APPROACHING_MRV_MARGIN:
        return VolumeStatus.APPROACHING_MRV
    if sets >= limits.mev:
        return VolumeStatus.IN_RANGE
    return VolumeStatus.BELOW_MEV


def classify_volume_status(
    weekly_volume: dict[MuscleGroup, float],
    config: MrvMevConfig | None = None,
) -> dict[MuscleGroup, VolumeStatus]:
    return {m: volume_status(weekly_volume.get(m, 0), get_limits(config, m)) for m in MuscleGroup}


def compute_remaining_capacity(
    weekly_volume: dict[MuscleGroup, float],
    config: MrvMevConfig | None = None,
) -> dict[MuscleGroup, float]:
    """MRV − volume per muscle; zero or negative means exhausted."""
    return {m: get_limits(config, m).mrv - weekly_volume.get(m, 0) for m in MuscleGroup}


def remaining_capacity(
    muscle: MuscleGroup,
    weekly_volume: dict[MuscleGroup, float],
    config: MrvMevConfig | None = None,
) -> float:
    return get_limits(config, muscle).mrv - weekly_volume.get(muscle, 0)

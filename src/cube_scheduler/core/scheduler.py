"""
Block scheduler: week → block, cube rotation, calendar dates, program scaffold.

The scaffold is schedule-only.  No loads are computed here; prescriptions
are produced at session start by the JIT pipeline.
"""

from datetime import date, timedelta

from .errors import InvalidInputError
from .models import IntensityType, Lift, SessionScaffold

LIFT_ORDER: tuple[Lift, ...] = (Lift.SQUAT, Lift.BENCH, Lift.DEADLIFT)

# Day offsets from the program start (start date = day 0 of week 1)
DAY_OFFSETS: dict[int, tuple[int, ...]] = {
    3: (0, 2, 4),
    4: (0, 1, 3, 5),
    5: (0, 1, 2, 4, 5),
}


def get_block_number(week_number: int) -> int:
    """Block for a program week: floor((week - 1) / 3) + 1."""
    if week_number < 1:
        raise InvalidInputError(f"week_number must be >= 1, got {week_number}")
    return (week_number - 1) // 3 + 1


def get_week_in_block(week_number: int) -> int:
    if week_number < 1:
        raise InvalidInputError(f"week_number must be >= 1, got {week_number}")
    return (week_number - 1) % 3 + 1


def is_deload_week(week_number: int, total_weeks: int) -> bool:
    return week_number == total_weeks


def rotation_intensity(week_in_block: int, lift: Lift) -> IntensityType:
    """
    Cube rotation: across a 3-week block every lift visits each intensity once.

        week 1: squat heavy,     bench rep,       deadlift explosive
        week 2: squat explosive, bench heavy,     deadlift rep
        week 3: squat rep,       bench explosive, deadlift heavy
    """
    match (week_in_block, lift):
        case (1, Lift.SQUAT) | (2, Lift.BENCH) | (3, Lift.DEADLIFT):
            return IntensityType.HEAVY
        case (1, Lift.DEADLIFT) | (2, Lift.SQUAT) | (3, Lift.BENCH):
            return IntensityType.EXPLOSIVE
        case (1, Lift.BENCH) | (2, Lift.DEADLIFT) | (3, Lift.SQUAT):
            return IntensityType.REP
    raise InvalidInputError(f"week_in_block must be 1, 2 or 3, got {week_in_block}")


def get_intensity_type_for_week(week_number: int, lift: Lift) -> IntensityType:
    """Intensity type for a lift in a given week; weeks past block 3 are deload."""
    if get_block_number(week_number) > 3:
        return IntensityType.DELOAD
    return rotation_intensity(get_week_in_block(week_number), lift)


def calculate_session_date(
    start_date: date,
    week_number: int,
    day_index: int,
    training_days_per_week: int,
) -> date:
    """
    Calendar date of a training day.

    date = start + (week - 1) * 7 + DAY_OFFSETS[days][day_index]

    Args:
        start_date: Program start (day 0)
        week_number: 1-based week
        day_index: 0-based index within the week's training days
        training_days_per_week: 3, 4 or 5

    Raises:
        InvalidInputError: Unsupported days-per-week or out-of-range day index
    """
    offsets = DAY_OFFSETS.get(training_days_per_week)
    if offsets is None:
        raise InvalidInputError(
            f"Unsupported training_days_per_week: {training_days_per_week}. Supported: 3, 4, 5."
        )
    if not 0 <= day_index < len(offsets):
        raise InvalidInputError(
            f"day_index {day_index} out of range for {training_days_per_week}-day program."
        )
    return start_date + timedelta(days=(week_number - 1) * 7 + offsets[day_index])


def _week_sessions(
    week_number: int,
    training_days_per_week: int,
    start_date: date,
    deload: bool,
) -> list[SessionScaffold]:
    sessions = []
    for day_index in range(training_days_per_week):
        lift = LIFT_ORDER[day_index % len(LIFT_ORDER)]
        sessions.append(
            SessionScaffold(
                week_number=week_number,
                day_number=day_index + 1,
                lift=lift,
                intensity_type=IntensityType.DELOAD if deload else get_intensity_type_for_week(week_number, lift),
                block_number=None if deload else get_block_number(week_number),
                is_deload=deload,
                planned_date=calculate_session_date(start_date, week_number, day_index, training_days_per_week),
            )
        )
    return sessions


def generate_program(total_weeks: int, training_days_per_week: int, start_date: date) -> list[SessionScaffold]:
    """
    Lay out every session of a program.

    Lifts rotate squat → bench → deadlift across the week's training days.
    The final week is always a deload.

    Args:
        total_weeks: Program length including the deload week
        training_days_per_week: 3, 4 or 5
        start_date: Date of week 1, day 1

    Returns:
        Sessions ordered by week then day

    Raises:
        InvalidInputError: Non-positive total_weeks or unsupported days-per-week
    """
    if total_weeks < 1:
        raise InvalidInputError(f"total_weeks must be >= 1, got {total_weeks}")
    if training_days_per_week not in DAY_OFFSETS:
        raise InvalidInputError(
            f"Unsupported training_days_per_week: {training_days_per_week}. Supported: 3, 4, 5."
        )

    sessions: list[SessionScaffold] = []
    for week in range(1, total_weeks + 1):
        deload = is_deload_week(week, total_weeks)
        sessions.extend(_week_sessions(week, training_days_per_week, start_date, deload))
    return sessions

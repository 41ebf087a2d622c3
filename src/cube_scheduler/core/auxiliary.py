"""
Auxiliary rotator.

Each block consumes two consecutive positions of a lift's pool; a persisted
offset (2 × completed blocks across earlier programs) lets a new program
continue the rotation instead of restarting it.
"""

from typing import Iterable

from .errors import InvalidInputError
from .models import AuxiliaryAssignment, Lift, ProgramRecord

AuxiliaryPool = dict[Lift, list[str]]

DEFAULT_AUXILIARY_POOLS: AuxiliaryPool = {
    Lift.SQUAT: [
        "Pause Squat",
        "Box Squat",
        "Bulgarian Split Squat",
        "Leg Press",
        "High-Bar Squat",
        "Belt Squat",
        "Hack Squat",
        "Front Squat",
    ],
    Lift.BENCH: [
        "Close-Grip Bench",
        "Incline DB Press",
        "Dips",
        "Floor Press",
        "Overhead Press",
        "JM Press",
        "Board Press",
        "Spoto Press",
    ],
    Lift.DEADLIFT: [
        "Romanian DL",
        "Block Pulls",
        "Deficit DL",
        "Good Mornings",
        "Stiff-Leg DL",
        "Sumo DL",
        "Rack Pulls",
        "Hyperextensions",
    ],
}

BLOCKS_PER_PROGRAM = 3
_LIFTS = (Lift.SQUAT, Lift.BENCH, Lift.DEADLIFT)


def get_auxiliaries_for_block(block_number: int, pool: list[str], start_offset: int = 0) -> tuple[str, str]:
    """
    The two exercises for a block.

    positions = (offset + 2(b-1)) mod size, (offset + 2(b-1) + 1) mod size

    Raises:
        InvalidInputError: Block outside 1-3, negative offset or a pool with
            fewer than 2 exercises
    """
    if block_number not in (1, 2, 3):
        raise InvalidInputError(f"block_number must be 1, 2 or 3, got {block_number}")
    if start_offset < 0:
        raise InvalidInputError("start_offset must be non-negative")
    if len(pool) < 2:
        raise InvalidInputError("auxiliary pool needs at least 2 exercises")
    base = start_offset + (block_number - 1) * 2
    return pool[base % len(pool)], pool[(base + 1) % len(pool)]


def compute_block_offset(program_history: Iterable[ProgramRecord]) -> int:
    """Rotation offset from earlier programs: 2 × total completed blocks."""
    return 2 * sum(p.completed_blocks for p in program_history)


def generate_auxiliary_assignments(pools: AuxiliaryPool, start_offset: int = 0) -> list[AuxiliaryAssignment]:
    """
    Assign two auxiliaries to every (block, lift) pair.

    Lifts whose pool is missing or has fewer than 2 exercises are skipped,
    so a full set of pools yields 9 assignments.
    """
    assignments = []
    for block in range(1, BLOCKS_PER_PROGRAM + 1):
        for lift in _LIFTS:
            pool = pools.get(lift) or []
            if len(pool) < 2:
                continue
            first, second = get_auxiliaries_for_block(block, pool, start_offset)
            assignments.append(AuxiliaryAssignment(block_number=block, lift=lift, exercise1=first, exercise2=second))
    return assignments


def assignment_for(assignments: list[AuxiliaryAssignment], lift: Lift, block_number: int) -> tuple[str, str] | None:
    """Look up the pair assigned to (lift, block), or None."""
    for a in assignments:
        if a.lift == lift and a.block_number == block_number:
            return a.exercise1, a.exercise2
    return None

"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of schedules and JIT sessions.
"""

from rich.console import Console
from rich.table import Table

from ..core.models import (
    AuxiliaryAssignment,
    JITOutput,
    MuscleGroup,
    MuscleVolumeLimits,
    SessionScaffold,
    VolumeStatus,
)

console = Console()

_STATUS_STYLE: dict[VolumeStatus, str] = {
    VolumeStatus.BELOW_MEV: "dim",
    VolumeStatus.IN_RANGE: "green",
    VolumeStatus.APPROACHING_MRV: "yellow",
    VolumeStatus.AT_MRV: "bold yellow",
    VolumeStatus.EXCEEDED_MRV: "bold red",
}


def _fmt_weight(weight_kg: float) -> str:
    return f"{weight_kg:g} kg"


def format_schedule_table(sessions: list[SessionScaffold]) -> Table:
    """
    Create a Rich table displaying the program scaffold.

    Args:
        sessions: Scaffold entries in schedule order

    Returns:
        Rich Table object
    """
    table = Table(title="Program Schedule")

    table.add_column("Wk", justify="right", style="dim", width=3)
    table.add_column("Day", justify="right", width=3)
    table.add_column("Date", style="cyan", no_wrap=True)
    table.add_column("Lift", style="bold")
    table.add_column("Intensity", style="magenta")
    table.add_column("Block", justify="right")

    last_wk: int | None = None
    for s in sessions:
        if last_wk is not None and s.week_number != last_wk:
            table.add_section()
        last_wk = s.week_number
        table.add_row(
            str(s.week_number),
            str(s.day_number),
            s.planned_date.strftime("%Y-%m-%d (%a)"),
            s.lift.value,
            s.intensity_type.value,
            "deload" if s.is_deload else str(s.block_number),
        )

    return table


def format_assignments_table(assignments: list[AuxiliaryAssignment]) -> Table:
    table = Table(title="Auxiliary Rotation")
    table.add_column("Block", justify="right")
    table.add_column("Lift", style="bold")
    table.add_column("Exercise 1", style="green")
    table.add_column("Exercise 2", style="green")
    for a in assignments:
        table.add_row(str(a.block_number), a.lift.value, a.exercise1, a.exercise2)
    return table


def print_jit_session(output: JITOutput, title: str = "Session") -> None:
    """
    Print a prescribed session: warmup, main sets, auxiliaries, notes.

    Args:
        output: Constraint-checked JIT output
        title: Heading for the main table
    """
    strategy = output.strategy.value if output.strategy is not None else "-"
    console.print()
    console.print(
        f"[bold cyan]{title}[/bold cyan]  strategy={strategy}  "
        f"volume×{output.volume_modifier:g}  intensity×{output.intensity_modifier:g}"
    )
    if output.recovery_mode:
        console.print("[yellow]Recovery mode[/yellow]")

    if output.skipped_main_lift:
        console.print("[bold red]Main lift skipped[/bold red]")
    else:
        table = Table(show_lines=False)
        table.add_column("Set", justify="right", style="dim", width=4)
        table.add_column("Weight", justify="right")
        table.add_column("Reps", justify="right", style="bold")
        table.add_column("RPE", justify="right")
        table.add_column("Rest(s)", justify="right", style="dim")

        for w in output.warmup_sets:
            table.add_row(f"W{w.set_number}", w.display_weight, str(w.reps), "-", "-", style="dim")
        rests = output.rest_recommendations.main_lift
        for i, s in enumerate(output.main_lift_sets):
            reps = f"{s.reps_range[0]}-{s.reps_range[1]}" if s.reps_range else str(s.reps)
            rest = str(rests[i]) if i < len(rests) else "-"
            table.add_row(str(s.set_number), _fmt_weight(s.weight_kg), reps, f"{s.rpe_target:g}", rest)
        console.print(table)

    for i, aux in enumerate(output.auxiliary_work):
        if aux.skipped:
            console.print(f"  [dim]{aux.exercise}: skipped ({aux.skip_reason})[/dim]")
            continue
        first = aux.sets[0]
        rests = output.rest_recommendations.auxiliary
        rest = f"  rest {rests[i]}s" if i < len(rests) else ""
        console.print(f"  {aux.exercise}: {len(aux.sets)}×{first.reps} @ {_fmt_weight(first.weight_kg)}{rest}")

    if output.advisory_rest_suggestion is not None:
        sug = output.advisory_rest_suggestion
        console.print(f"  Rest suggestion: {sug.delta_seconds:+d}s on {sug.formula_base_seconds}s")

    if output.comparison is not None and output.comparison.should_surface_to_user:
        div = output.comparison.divergence
        print_warning(f"Advisory differs from formula: weight {div.weight_pct:.0%}, sets {div.set_delta:+d}")

    for line in output.rationale:
        console.print(f"  [blue]• {line}[/blue]")
    for line in output.warnings:
        print_warning(line)


def format_volume_table(
    volume: dict[MuscleGroup, int],
    limits: dict[MuscleGroup, MuscleVolumeLimits],
    status: dict[MuscleGroup, VolumeStatus],
) -> Table:
    table = Table(title="Weekly Volume")
    table.add_column("Muscle", style="cyan")
    table.add_column("Sets", justify="right", style="bold")
    table.add_column("MEV", justify="right", style="dim")
    table.add_column("MRV", justify="right", style="dim")
    table.add_column("Status")
    for muscle in MuscleGroup:
        st = status[muscle]
        table.add_row(
            muscle.value,
            str(volume.get(muscle, 0)),
            f"{limits[muscle].mev:g}",
            f"{limits[muscle].mrv:g}",
            f"[{_STATUS_STYLE[st]}]{st.value}[/{_STATUS_STYLE[st]}]",
        )
    return table


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")

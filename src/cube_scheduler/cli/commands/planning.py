"""Planning commands: schedule, auxiliary."""

import json
from datetime import date
from pathlib import Path
from typing import Annotated, Optional

import typer

from ...core.auxiliary import generate_auxiliary_assignments
from ...core.engine.config_loader import load_auxiliary_pools
from ...core.errors import InvalidInputError
from ...core.scheduler import generate_program
from ...io.serializers import ValidationError, assignment_to_dict, scaffold_to_dict, validate_date
from .. import views
from ..app import ConfigOption, JsonOption, app, get_config


@app.command()
def schedule(
    weeks: Annotated[
        int,
        typer.Option("--weeks", "-w", help="Program length in weeks, including the final deload"),
    ] = 10,
    days: Annotated[
        int,
        typer.Option("--days", "-d", help="Training days per week: 3, 4 or 5"),
    ] = 3,
    start: Annotated[
        Optional[str],
        typer.Option("--start", "-s", help="Program start date (YYYY-MM-DD, default: today)"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    Print the program scaffold: lift and intensity for every session.
    """
    try:
        start_date = validate_date(start) if start else date.today()
        sessions = generate_program(weeks, days, start_date)
    except (ValidationError, InvalidInputError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([scaffold_to_dict(s) for s in sessions], indent=2))
        return

    views.console.print(views.format_schedule_table(sessions))


@app.command()
def auxiliary(
    offset: Annotated[
        int,
        typer.Option("--offset", "-o", help="Rotation offset (2 × blocks completed in earlier programs)"),
    ] = 0,
    config_path: ConfigOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Print the auxiliary exercise pairs for every block and lift.
    """
    try:
        pools = load_auxiliary_pools(config=get_config(config_path))
        assignments = generate_auxiliary_assignments(pools, offset)
    except (FileNotFoundError, InvalidInputError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([assignment_to_dict(a) for a in assignments], indent=2))
        return

    views.console.print(views.format_assignments_table(assignments))

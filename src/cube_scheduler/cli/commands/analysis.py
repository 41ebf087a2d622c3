"""Analysis commands: volume, estimate-1rm."""

import json
from typing import Annotated

import typer

from ...core.engine.config_loader import load_mrv_mev_config
from ...core.errors import InvalidInputError
from ...core.formulas import estimate_one_rep_max, kg_to_lb, round_to_nearest
from ...core.volume import classify_volume_status, compute_remaining_capacity, compute_weekly_volume
from ...io.serializers import ValidationError, parse_set_log
from .. import views
from ..app import ConfigOption, JsonOption, app, get_config


@app.command()
def volume(
    log: Annotated[
        list[str],
        typer.Option("--log", help="Completed main-lift sets this week, lift=sets, repeatable"),
    ],
    config_path: ConfigOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show weekly set volume per muscle against MEV/MRV.
    """
    try:
        logs = [parse_set_log(entry) for entry in log]
        limits = load_mrv_mev_config(config=get_config(config_path))
    except (FileNotFoundError, ValidationError, InvalidInputError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    weekly = compute_weekly_volume(logs)
    status = classify_volume_status(weekly, limits)

    if json_out:
        remaining = compute_remaining_capacity(weekly, limits)
        print(json.dumps({
            m.value: {
                "sets": weekly[m],
                "mev": limits[m].mev,
                "mrv": limits[m].mrv,
                "remaining": remaining[m],
                "status": status[m].value,
            }
            for m in weekly
        }, indent=2))
        return

    views.console.print(views.format_volume_table(weekly, limits, status))


@app.command("estimate-1rm")
def estimate_1rm(
    weight: Annotated[
        float,
        typer.Option("--weight", "-w", help="Load lifted in kg"),
    ],
    reps: Annotated[
        int,
        typer.Option("--reps", "-r", help="Reps completed (1-20)"),
    ],
    formula: Annotated[
        str,
        typer.Option("--formula", "-f", help="epley (default) or brzycki"),
    ] = "epley",
    json_out: JsonOption = False,
) -> None:
    """
    Estimate a one-rep max from a sub-maximal set.
    """
    try:
        one_rm = estimate_one_rep_max(weight, reps, formula.strip().lower())
    except InvalidInputError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "weight_kg": weight,
            "reps": reps,
            "formula": formula,
            "one_rm_kg": round(one_rm, 2),
            "one_rm_rounded_kg": round_to_nearest(one_rm),
        }, indent=2))
        return

    views.console.print(
        f"Estimated 1RM ({formula}): [bold]{one_rm:.1f} kg[/bold]"
        f"  (≈ {round_to_nearest(one_rm):g} kg, {kg_to_lb(one_rm):.0f} lb)"
    )

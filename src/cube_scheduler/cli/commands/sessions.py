"""Session commands: session."""

import asyncio
import json
from typing import Annotated, Optional

import typer

from ...core.auxiliary import assignment_for, generate_auxiliary_assignments
from ...core.engine.config_loader import (
    load_auxiliary_pools,
    load_formula_config,
    load_mrv_mev_config,
    load_warmup_protocol,
)
from ...core.errors import InvalidInputError
from ...core.models import JITInput, WarmupProtocol
from ...core.strategies import STRATEGY_NAMES, get_jit_generator
from ...core.warmup import get_preset_steps
from ...io.advisory_client import client_from_env
from ...io.serializers import (
    ValidationError,
    jit_output_to_dict,
    parse_disruption,
    parse_rpe_log,
    parse_soreness,
    parse_weekly_volume,
    validate_date,
    validate_lift,
)
from .. import views
from ..app import ConfigOption, JsonOption, app, get_config


@app.command()
def session(
    lift: Annotated[
        str,
        typer.Option("--lift", "-l", help="Main lift: squat, bench, deadlift"),
    ],
    one_rm: Annotated[
        float,
        typer.Option("--one-rm", "-m", help="Current one-rep max in kg"),
    ],
    intensity: Annotated[
        str,
        typer.Option("--intensity", "-i", help="heavy, explosive, rep or deload"),
    ] = "heavy",
    block: Annotated[
        int,
        typer.Option("--block", "-b", help="Block number 1-3"),
    ] = 1,
    week: Annotated[
        int,
        typer.Option("--week", "-w", help="Program week number"),
    ] = 1,
    soreness: Annotated[
        Optional[list[str]],
        typer.Option("--soreness", help="Soreness rating muscle=level (1-5), repeatable"),
    ] = None,
    volume: Annotated[
        Optional[list[str]],
        typer.Option("--volume", help="Sets already done this week, muscle=sets, repeatable"),
    ] = None,
    disruption: Annotated[
        Optional[list[str]],
        typer.Option("--disruption", help="severity[:lift,...][:description], repeatable"),
    ] = None,
    rpe: Annotated[
        Optional[list[str]],
        typer.Option("--rpe", help="Recent session RPE actual/target, most recent first, repeatable"),
    ] = None,
    sex: Annotated[
        Optional[str],
        typer.Option("--sex", help="Biological sex: male or female"),
    ] = None,
    warmup: Annotated[
        Optional[str],
        typer.Option("--warmup", help="Warmup preset (default: from config, else standard)"),
    ] = None,
    session_date: Annotated[
        Optional[str],
        typer.Option("--date", help="Session date (YYYY-MM-DD); scopes dated disruptions"),
    ] = None,
    strategy: Annotated[
        str,
        typer.Option("--strategy", help=f"Generation strategy: {', '.join(STRATEGY_NAMES)}"),
    ] = "formula",
    config_path: ConfigOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Prescribe one session: warmup, working sets, auxiliaries and notes.

    Advisory and hybrid strategies read the service endpoint from
    CUBE_SCHEDULER_ADVISORY_URL and fall back to the formula when it is
    missing or unavailable.
    """
    try:
        config = get_config(config_path)
        main_lift = validate_lift(lift)

        if warmup is not None:
            get_preset_steps(warmup)
            warmup_protocol = WarmupProtocol.named(warmup)
        else:
            warmup_protocol = load_warmup_protocol(config=config)

        assignments = generate_auxiliary_assignments(load_auxiliary_pools(config=config))
        auxiliaries = assignment_for(assignments, main_lift, block) or ("", "")

        inp = JITInput(
            lift=main_lift,
            intensity_type=intensity.strip().lower(),
            block_number=block,
            one_rm_kg=one_rm,
            session_id=f"cli-{main_lift.value}-w{week}",
            week_number=week,
            formula_config=load_formula_config(config=config),
            soreness_ratings=parse_soreness(soreness or []),
            weekly_volume_to_date=parse_weekly_volume(volume or []),
            mrv_mev_config=load_mrv_mev_config(config=config),
            active_auxiliaries=auxiliaries,
            recent_logs=[parse_rpe_log(r) for r in rpe or []],
            active_disruptions=[parse_disruption(d) for d in disruption or []],
            warmup_config=warmup_protocol,
            biological_sex=sex.strip().lower() if sex else None,
            session_date=validate_date(session_date) if session_date else None,
        )
        generator = get_jit_generator(strategy, is_online=True, client=client_from_env())
        output = asyncio.run(generator.generate(inp))
    except (FileNotFoundError, ValidationError, InvalidInputError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(jit_output_to_dict(output), indent=2))
        return

    views.print_jit_session(output, title=f"{main_lift.value.title()} · {inp.intensity_type.value} · block {block}")

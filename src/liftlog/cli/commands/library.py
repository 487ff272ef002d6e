"""Library commands: programs, weights, history."""

import json
from typing import Annotated

import typer

from ...core.errors import LiftlogError
from ...io.local_store import LocalStore
from ...io.program_catalog import ProgramCatalog
from ...io.weight_memory import WeightMemory
from .. import views
from ..app import DataDirOption, app, get_api_client, get_engine, get_settings


@app.command()
def programs(
    data_dir: DataDirOption = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output program IDs and names as JSON"),
    ] = False,
) -> None:
    """
    List the workout programs you can start.

    The bundled Push, Pull and Legs programs are added on first use.
    Drop YAML files into <data-dir>/programs/ to add or override programs.
    """
    settings = get_settings(data_dir)
    engine = get_engine(settings)
    engine.initialize()
    catalog = ProgramCatalog(LocalStore(settings.data_dir), user_programs_dir=settings.user_programs_dir)
    library = catalog.list_programs()

    if json_out:
        print(json.dumps(
            [{"id": p.program_id, "name": p.name, "displayName": p.display_name} for p in library],
            indent=2,
        ))
        return

    current = engine.current_session()
    views.print_programs(library, current.program_id if current is not None else None)


@app.command()
def weights(data_dir: DataDirOption = None) -> None:
    """Show the last weight used for each exercise."""
    settings = get_settings(data_dir)
    store = LocalStore(settings.data_dir)
    names: dict[str, str] = {}
    for program in ProgramCatalog(store, user_programs_dir=settings.user_programs_dir).list_programs():
        for spec in program.exercises:
            names.setdefault(spec.exercise_id, spec.name)
    views.print_weights(WeightMemory(store).all_weights(), names, settings.weight_unit)


@app.command()
def history(
    data_dir: DataDirOption = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output the raw workout documents as JSON"),
    ] = False,
) -> None:
    """List workouts saved to the workout API."""
    settings = get_settings(data_dir)
    try:
        with get_api_client(settings) as client:
            workouts = client.list_workouts()
    except LiftlogError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(workouts, indent=2, default=str))
        return
    views.print_history(workouts)

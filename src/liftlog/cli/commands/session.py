"""Live session commands: start, status, complete, rest control, pause, reset, finish, watch."""

import json
import threading
from typing import Annotated, NoReturn, Optional

import typer
from rich.live import Live

from ...core.config_loader import Settings
from ...core.errors import LiftlogError, PersistenceUnavailable
from ...core.session_engine import SessionEngine
from ...core.timers import TimerDriver
from ...io.serializers import completion_record_to_payload, session_to_dict
from .. import views
from ..app import DataDirOption, YesOption, app, get_api_client, get_engine, get_settings


def _open(data_dir) -> tuple[Settings, SessionEngine]:
    """Load settings, build the engine and resume any stored session."""
    settings = get_settings(data_dir)
    engine = get_engine(settings)
    engine.initialize()
    return settings, engine


def _fail(error: Exception) -> NoReturn:
    views.print_error(str(error))
    raise typer.Exit(1)


def _show(engine: SessionEngine, settings: Settings) -> None:
    snapshot = engine.snapshot()
    if snapshot is not None:
        views.print_session(snapshot, settings.weight_unit)


def _confirm(yes: bool):
    return (lambda _message: True) if yes else views.confirm_action


@app.command()
def start(
    program: Annotated[str, typer.Argument(help="Program ID or short name, e.g. push")],
    data_dir: DataDirOption = None,
    yes: YesOption = False,
) -> None:
    """
    Start a live workout from a program.

    A workout already in progress is replaced (after confirmation).
    """
    settings, engine = _open(data_dir)
    current = engine.current_session()
    if current is not None and not yes:
        if not views.confirm_action(f"{current.program_name} is in progress. Replace it?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)
    try:
        session = engine.start_session(program)
    except LiftlogError as e:
        _fail(e)
    views.print_success(f"Started {session.program_name}")
    _show(engine, settings)


@app.command()
def status(
    data_dir: DataDirOption = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output the raw session snapshot as JSON"),
    ] = False,
) -> None:
    """Show the active workout: progress, elapsed time and rest countdown."""
    settings, engine = _open(data_dir)
    snapshot = engine.snapshot()
    if snapshot is None:
        if json_out:
            print("null")
        else:
            views.print_info("No active workout. Start one with 'liftlog start <program>'.")
        return
    if json_out:
        data = session_to_dict(snapshot.session)
        data["elapsed_ms"] = snapshot.elapsed_ms
        data["rest_remaining_ms"] = snapshot.rest_remaining_ms
        print(json.dumps(data, indent=2))
        return
    views.print_session(snapshot, settings.weight_unit)


@app.command()
def complete(
    exercise: Annotated[
        Optional[int],
        typer.Option("--exercise", "-e", min=1, help="Exercise number (default: current)"),
    ] = None,
    set_number: Annotated[
        Optional[int],
        typer.Option("--set", "-s", min=1, help="Set number (default: next open set)"),
    ] = None,
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", min=0, help="Load used (default: last used for this exercise)"),
    ] = None,
    no_weight: Annotated[
        bool,
        typer.Option("--no-weight", help="Record the set without a load"),
    ] = False,
    reps: Annotated[
        Optional[int],
        typer.Option("--reps", "-r", min=0, help="Reps actually performed"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Complete a set and start the rest timer.

    Without options, completes the next set of the current exercise at
    the last weight used for it.
    """
    settings, engine = _open(data_dir)
    snapshot = engine.snapshot()
    if snapshot is None:
        _fail(LiftlogError("No active workout. Start one with 'liftlog start <program>'."))

    ex_idx = exercise - 1 if exercise is not None else snapshot.session.current_exercise_index
    set_idx = set_number - 1 if set_number is not None else None

    load = None if no_weight else weight
    if load is None and not no_weight and 0 <= ex_idx < len(snapshot.exercises):
        load = snapshot.exercises[ex_idx].suggested_weight

    try:
        session = engine.complete_set(ex_idx, set_idx, weight=load, actual_reps=reps)
    except (LiftlogError, IndexError) as e:
        _fail(e)

    progress = session.exercises[ex_idx]
    done_msg = f"Set done: {snapshot.exercises[ex_idx].name} {progress.completed_count}/{len(progress.sets)}"
    if load is not None:
        done_msg += f" @ {load:g} {settings.weight_unit}"
    views.print_success(done_msg)
    if session.resting and session.rest_start_time != snapshot.session.rest_start_time:
        views.print_info(f"Rest {session.rest_duration_ms // 1000}s")
    _show(engine, settings)


@app.command("skip-rest")
def skip_rest(data_dir: DataDirOption = None) -> None:
    """End the current rest period now."""
    settings, engine = _open(data_dir)
    try:
        engine.skip_rest()
    except LiftlogError as e:
        _fail(e)
    views.print_success("Rest skipped.")
    _show(engine, settings)


@app.command("extend-rest")
def extend_rest(
    seconds: Annotated[
        Optional[int],
        typer.Argument(min=1, help="Seconds to add (default: 30, or rest_extension_seconds)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """Add time to the running rest period."""
    settings, engine = _open(data_dir)
    extra = seconds if seconds is not None else settings.rest_extension_seconds
    try:
        session = engine.extend_rest(extra)
    except LiftlogError as e:
        _fail(e)
    if not session.resting:
        views.print_info("Not resting; nothing to extend.")
        return
    views.print_success(f"Added {extra}s of rest.")
    _show(engine, settings)


@app.command()
def pause(data_dir: DataDirOption = None) -> None:
    """Pause the workout, or resume it if already paused."""
    settings, engine = _open(data_dir)
    try:
        session = engine.toggle_pause()
    except LiftlogError as e:
        _fail(e)
    views.print_success("Workout paused." if session.paused else "Workout resumed.")
    _show(engine, settings)


@app.command()
def reset(
    data_dir: DataDirOption = None,
    yes: YesOption = False,
) -> None:
    """Throw away all progress and restart the same program."""
    settings, engine = _open(data_dir)
    try:
        session = engine.reset_session(_confirm(yes))
    except LiftlogError as e:
        _fail(e)
    if session is None:
        views.print_info("Cancelled.")
        raise typer.Exit(0)
    views.print_success(f"Restarted {session.program_name}")
    _show(engine, settings)


@app.command()
def finish(
    data_dir: DataDirOption = None,
    yes: YesOption = False,
    no_upload: Annotated[
        bool,
        typer.Option("--no-upload", help="Finish locally without saving to the workout API"),
    ] = False,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output the completion record as JSON"),
    ] = False,
) -> None:
    """
    Finish the workout and save it.

    The workout stays active (and can be finished again) if the API save
    fails.
    """
    settings, engine = _open(data_dir)
    save = None
    client = None
    if not no_upload:
        client = get_api_client(settings)
        save = client.add_workout
    try:
        record = engine.finish_session(_confirm(yes), save=save)
    except PersistenceUnavailable as e:
        views.print_error(str(e))
        views.print_warning("The workout is still active; fix the problem and run 'finish' again.")
        raise typer.Exit(1)
    except LiftlogError as e:
        _fail(e)
    finally:
        if client is not None:
            client.close()

    if record is None:
        views.print_info("Cancelled.")
        raise typer.Exit(0)
    if json_out:
        print(json.dumps(completion_record_to_payload(record), indent=2))
        return
    views.print_completion_record(record, settings.weight_unit, saved=not no_upload)


@app.command()
def watch(data_dir: DataDirOption = None) -> None:
    """
    Show the workout with live timers until Ctrl+C.

    Rest periods expire here on their own; use other commands in a second
    terminal to complete sets.
    """
    settings = get_settings(data_dir)
    changed = threading.Event()
    driver = TimerDriver(
        autostart=True,
        workout_interval=settings.workout_tick_seconds,
        rest_interval=settings.rest_tick_seconds,
        on_workout_tick=lambda _ms: changed.set(),
        on_rest_tick=lambda _ms: changed.set(),
    )
    engine = get_engine(settings, driver)
    if engine.initialize() is None:
        views.print_info("No active workout. Start one with 'liftlog start <program>'.")
        engine.shutdown()
        return

    snapshot = engine.snapshot()
    seen = session_to_dict(snapshot.session) if snapshot is not None else None
    was_resting = snapshot is not None and snapshot.session.resting
    try:
        with Live(console=views.console, refresh_per_second=10, transient=False) as live:
            while snapshot is not None:
                live.update(views.render_live(snapshot, settings.weight_unit))
                changed.wait(timeout=1.0)
                changed.clear()
                snapshot = engine.snapshot()
                if snapshot is None:
                    break
                stored = session_to_dict(snapshot.session)
                if stored != seen:
                    # Changed by another command or by rest expiry: re-arm timers.
                    engine.resume_session()
                    snapshot = engine.snapshot()
                    if snapshot is None:
                        break
                    seen = session_to_dict(snapshot.session)
                if was_resting and not snapshot.session.resting:
                    views.console.bell()
                was_resting = snapshot.session.resting
    except KeyboardInterrupt:
        pass
    finally:
        engine.shutdown()

    if snapshot is None:
        views.print_info("Workout no longer active.")

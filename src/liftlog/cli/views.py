"""
CLI view formatters using Rich for pretty console output.

This is the presentation adapter for the session engine: everything here
reads snapshots and records, nothing mutates state.
"""

from typing import Any

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.clock import format_clock
from ..core.models import CompletionRecord, Program
from ..core.session_engine import ExerciseView, SessionSnapshot

console = Console()
err_console = Console(stderr=True)


def _fmt_weight(weight: float | None, unit: str) -> str:
    if weight is None:
        return "—"
    return f"{weight:g} {unit}"


def status_line(snapshot: SessionSnapshot) -> Text:
    """One-line header: program, elapsed time and rest/pause state."""
    session = snapshot.session
    line = Text()
    line.append(session.program_name, style="bold cyan")
    line.append(f"  ⏱ {format_clock(snapshot.elapsed_ms)}")
    line.append(f"  Sets {session.completed_sets}/{session.total_sets}", style="dim")
    if session.paused:
        line.append("  PAUSED", style="bold yellow")
        if session.resting:
            line.append("  (rest on hold)", style="yellow")
    elif snapshot.rest_remaining_ms is not None:
        line.append(
            f"  Rest {format_clock(snapshot.rest_remaining_ms, round_up=True)}",
            style="bold magenta",
        )
    elif session.is_complete:
        line.append("  All sets done, run 'finish'", style="bold green")
    return line


def _progress_cell(view: ExerciseView) -> str:
    cells = []
    for s in view.progress.sets:
        if s.completed:
            cells.append("[green]✓[/green]")
        elif view.is_current and view.actionable_set == s.set_number - 1:
            cells.append("[bold yellow]●[/bold yellow]")
        else:
            cells.append("[dim]·[/dim]")
    return " ".join(cells)


def format_session_table(snapshot: SessionSnapshot, unit: str = "lbs") -> Table:
    """
    Format the active session as a Rich table.

    Args:
        snapshot: Engine snapshot
        unit: Weight unit label

    Returns:
        Rich Table object
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Exercise")
    table.add_column("Target", justify="center")
    table.add_column("Rest", justify="right")
    table.add_column("Sets")
    table.add_column("Done", justify="right")
    table.add_column("Last weight", justify="right")

    for view in snapshot.exercises:
        spec = view.spec
        name = f"[bold]{view.name}[/bold]" if view.is_current else view.name
        if spec is not None and spec.notes:
            name += f"\n[dim italic]{spec.notes}[/dim italic]"
        table.add_row(
            str(view.index + 1),
            name,
            f"{spec.target_sets} × {spec.target_reps}" if spec is not None else "—",
            f"{spec.rest_seconds}s" if spec is not None else "—",
            _progress_cell(view),
            f"{view.completed_count}/{len(view.progress.sets)}",
            _fmt_weight(view.suggested_weight, unit),
        )

    return table


def render_session(snapshot: SessionSnapshot, unit: str = "lbs") -> Group:
    """Header plus table, used by both status and watch."""
    parts: list[Any] = [status_line(snapshot), format_session_table(snapshot, unit)]
    current = snapshot.current
    if current is not None and current.actionable_set is not None and not snapshot.session.paused:
        hint = f"Next: {current.name}, set {current.actionable_set + 1}"
        if current.spec is not None:
            hint += f" × {current.spec.target_reps} reps"
        if current.suggested_weight is not None:
            hint += f" @ {_fmt_weight(current.suggested_weight, unit)}"
        parts.append(Text(hint, style="cyan"))
    return Group(*parts)


def print_session(snapshot: SessionSnapshot, unit: str = "lbs") -> None:
    """Print the active session."""
    console.print()
    console.print(render_session(snapshot, unit))


def render_live(snapshot: SessionSnapshot, unit: str = "lbs") -> Panel:
    """Panel refreshed by the watch command."""
    return Panel(
        render_session(snapshot, unit),
        title="liftlog: live workout",
        subtitle="Ctrl+C to stop watching",
    )


def print_programs(programs: list[Program], active_program_id: str | None = None) -> None:
    """Print the program library."""
    if not programs:
        print_info("No programs in the library.")
        return

    table = Table(title="Programs", show_header=True, header_style="bold")
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Program")
    table.add_column("Exercises", justify="right")
    table.add_column("Sets", justify="right")

    for program in programs:
        label = program.display_name
        if program.program_id == active_program_id:
            label += " [green](active)[/green]"
        table.add_row(
            program.program_id,
            program.name,
            label,
            str(len(program.exercises)),
            str(sum(s.target_sets for s in program.exercises)),
        )

    console.print(table)


def print_completion_record(record: CompletionRecord, unit: str = "lbs", saved: bool = True) -> None:
    """Print a finished workout."""
    headline = "Workout saved!" if saved else "Workout finished."
    console.print()
    console.print(
        f"[bold green]{headline}[/bold green] {record.duration_minutes} min, "
        f"{record.completed_sets}/{record.total_sets} sets"
    )
    table = Table(show_header=True, header_style="bold")
    table.add_column("Exercise")
    table.add_column("Sets", justify="right")
    table.add_column("Loads")
    table.add_column("Time", justify="right")
    for ex in record.exercises:
        done = [s for s in ex.sets if s.completed]
        loads = ", ".join(_fmt_weight(s.weight, unit) for s in done if s.weight is not None)
        table.add_row(
            ex.name,
            f"{len(done)}/{len(ex.sets)}",
            loads or "—",
            format_clock(ex.elapsed_ms) if ex.elapsed_ms is not None else "—",
        )
    console.print(table)
    console.print(f"[dim]{record.notes}[/dim]")


def print_weights(weights: dict[str, float], names: dict[str, str], unit: str = "lbs") -> None:
    """Print the remembered per-exercise loads."""
    if not weights:
        print_info("No weights remembered yet.")
        return
    table = Table(title="Last used weights", show_header=True, header_style="bold")
    table.add_column("Exercise")
    table.add_column("ID", style="dim")
    table.add_column("Weight", justify="right")
    for exercise_id in sorted(weights, key=lambda k: names.get(k, k)):
        table.add_row(names.get(exercise_id, exercise_id), exercise_id, _fmt_weight(weights[exercise_id], unit))
    console.print(table)


def print_history(workouts: list[dict[str, Any]]) -> None:
    """Print workouts returned by the API, newest first."""
    if not workouts:
        print_info("No workouts saved yet.")
        return
    table = Table(title="Workout history", show_header=True, header_style="bold")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Program")
    table.add_column("Min", justify="right")
    table.add_column("Sets", justify="right")
    for w in sorted(workouts, key=lambda w: str(w.get("date", "")), reverse=True):
        sets = [s for ex in w.get("exercises") or [] for s in ex.get("sets") or []]
        done = sum(1 for s in sets if s.get("completed"))
        table.add_row(
            str(w.get("date", "?")),
            str(w.get("type", "")),
            str(w.get("programName") or "—"),
            str(w.get("durationMinutes", "")),
            f"{done}/{len(sets)}" if sets else "—",
        )
    console.print(table)


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


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")

"""
CLI entry point using Typer.

Provides commands for running a live workout:
- programs: List the program library
- start: Start a workout from a program
- status / watch: Show progress, elapsed time and the rest countdown
- complete: Complete a set (starts the rest timer)
- skip-rest / extend-rest: Control the rest period
- pause: Pause or resume
- reset / finish: Start over, or save the workout
- weights / history: Remembered loads and saved workouts
"""

import logging
from typing import Annotated

import typer
from rich.logging import RichHandler

from . import views
from .app import app
from .commands.library import programs, weights
from .commands.session import complete, finish, pause, skip_rest, start, status, watch


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=views.err_console, show_path=False)],
        force=True,
    )


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log debug output to stderr"),
    ] = False,
) -> None:
    """
    Live workout tracker. Run without a command for interactive mode.
    """
    _configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return

    # ── Interactive main menu ───────────────────────────────────────────────
    views.console.print()
    views.console.print("[bold cyan]liftlog[/bold cyan]: live workout tracker")
    views.console.print()

    menu = {
        "1": ("status",     "Show current workout"),
        "2": ("complete",   "Complete next set"),
        "3": ("skip-rest",  "Skip rest"),
        "4": ("watch",      "Live view with timers"),
        "5": ("pause",      "Pause / resume"),
        "s": ("start",      "Start a workout"),
        "f": ("finish",     "Finish and save workout"),
        "p": ("programs",   "List programs"),
        "w": ("weights",    "Last used weights"),
        "0": ("quit",       "Quit"),
    }

    for key, (_, desc) in menu.items():
        views.console.print(f"  \\[{key}] {desc}")

    views.console.print()
    choice = views.console.input("Choose [1]: ").strip() or "1"

    if choice == "0":
        raise typer.Exit(0)

    chosen = {k: v[0] for k, v in menu.items()}.get(choice)
    if chosen is None:
        views.print_error(f"Unknown choice: {choice}")
        raise typer.Exit(1)

    if chosen == "status":
        ctx.invoke(status)
    elif chosen == "complete":
        ctx.invoke(complete)
    elif chosen == "skip-rest":
        ctx.invoke(skip_rest)
    elif chosen == "watch":
        ctx.invoke(watch)
    elif chosen == "pause":
        ctx.invoke(pause)
    elif chosen == "start":
        _menu_start(ctx)
    elif chosen == "finish":
        ctx.invoke(finish)
    elif chosen == "programs":
        ctx.invoke(programs)
    elif chosen == "weights":
        ctx.invoke(weights)


def _menu_start(ctx: typer.Context) -> None:
    """Interactive start helper called from the main menu."""
    ctx.invoke(programs)
    ref = views.console.input("Program (ID or name, Enter to cancel): ").strip()
    if not ref:
        views.print_info("Cancelled.")
        return
    ctx.invoke(start, program=ref)


if __name__ == "__main__":
    app()

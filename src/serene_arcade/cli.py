"""CLI interface for Serene Arcade."""

import logging
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from serene_arcade.models import Difficulty, GameType, InvalidLevelError, validate_level
from serene_arcade.storage import LocalStore, ProgressStore, default_data_dir
from serene_arcade.tracker import ProgressTracker

# Load .env file - try current directory, then the data directory
load_dotenv(Path.cwd() / ".env")
load_dotenv(default_data_dir() / ".env")

app = typer.Typer(
    name="serene-arcade",
    help="Track progress through the Serene Arcade mini-games",
    no_args_is_help=True,
)
console = Console()


def _tracker(ctx: typer.Context) -> ProgressTracker:
    data_dir = ctx.obj.get("data_dir") if ctx.obj else None
    return ProgressTracker(ProgressStore(LocalStore(data_dir)))


def _mark(flag: bool) -> str:
    return "[green]✓[/green]" if flag else "[dim]-[/dim]"


@app.callback()
def main_options(
    ctx: typer.Context,
    data_dir: Path | None = typer.Option(
        None, "--data-dir", "-d", envvar="SERENE_ARCADE_DATA_DIR",
        help="Directory holding saved progress",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Track progress through the Serene Arcade mini-games."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"data_dir": data_dir}


@app.command()
def status(ctx: typer.Context):
    """Show overall progress."""
    tracker = _tracker(ctx)
    summary = tracker.progress.summary()

    console.print(Panel("[bold]Serene Arcade Status[/bold]", style="blue"))

    if not summary["has_completed_onboarding"]:
        console.print("Onboarding: [yellow]Not finished[/yellow]")
    console.print(f"Games played: {summary['total_games_played']}")
    console.print(f"Levels completed: {summary['total_completed_levels']}")
    console.print(
        f"Achievements: {summary['unlocked_achievements']}/{summary['total_achievements']}"
    )
    console.print(f"Energy level: {summary['energy_level']}/10")
    console.print(f"Stage: {summary['current_stage']}")
    console.print(
        f"Highest difficulty: {Difficulty(summary['highest_unlocked_difficulty']).display_name}"
    )


@app.command()
def levels(
    ctx: typer.Context,
    game: GameType = typer.Argument(..., help="Game to show", case_sensitive=False),
):
    """Show the level table of a game."""
    tracker = _tracker(ctx)
    progress = tracker.progress.game(game)

    console.print(
        f"[bold]{game.display_name}[/bold] - {game.tagline} "
        f"({progress.total_completed_levels()}/{progress.total_levels()} levels, "
        f"{progress.total_attempts()} attempts)"
    )

    for difficulty in Difficulty:
        table = Table(
            title=f"{difficulty.display_name} "
            f"({progress.completed_levels(difficulty)}/{difficulty.level_count})",
            title_justify="left",
        )
        table.add_column("Level", justify="right")
        table.add_column("Unlocked", justify="center")
        table.add_column("Completed", justify="center")
        table.add_column("Best score", justify="right")
        table.add_column("Attempts", justify="right")

        for number in range(1, difficulty.level_count + 1):
            level = progress.root.get(difficulty, {}).get(number)
            table.add_row(
                str(number),
                _mark(progress.is_level_unlocked(difficulty, number)),
                _mark(level is not None and level.completed),
                str(level.best_score if level else 0),
                str(level.attempts if level else 0),
            )
        console.print(table)


@app.command()
def achievements(ctx: typer.Context):
    """List achievements."""
    tracker = _tracker(ctx)

    table = Table(title="Achievements", title_justify="left")
    table.add_column("Achievement")
    table.add_column("Description")
    table.add_column("Unlocked")

    for achievement in tracker.progress.achievements:
        when = ""
        if achievement.unlocked:
            when = achievement.unlocked_date.strftime("%Y-%m-%d %H:%M") if achievement.unlocked_date else "yes"
        table.add_row(
            f"[bold]{achievement.title}[/bold]" if achievement.unlocked else f"[dim]{achievement.title}[/dim]",
            achievement.description,
            when,
        )
    console.print(table)


@app.command()
def play(
    ctx: typer.Context,
    game: GameType = typer.Argument(..., help="Game that was played", case_sensitive=False),
    difficulty: Difficulty = typer.Argument(..., help="Difficulty tier", case_sensitive=False),
    level: int = typer.Argument(..., help="Level number"),
    score: int = typer.Option(0, "--score", "-s", min=0, help="Score of the round"),
    won: bool = typer.Option(True, "--won/--lost", help="Whether the round was won"),
    force: bool = typer.Option(False, "--force", help="Record even if the level is locked"),
):
    """Record the result of a finished round."""
    try:
        validate_level(difficulty, level)
    except InvalidLevelError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    tracker = _tracker(ctx)
    if not force and not tracker.is_level_unlocked(game, difficulty, level):
        console.print(
            f"[bold red]Error:[/bold red] {game.display_name} {difficulty.display_name} "
            f"level {level} is locked."
        )
        raise typer.Exit(1)

    unlocked = tracker.on_level_finished(game, difficulty, level, won=won, score=score)

    if won:
        best = tracker.progress.game(game).level(difficulty, level).best_score
        console.print(
            f"[bold green]Level complete![/bold green] {game.display_name} "
            f"{difficulty.display_name} {level} - score {score} (best {best})"
        )
    else:
        console.print(
            f"[yellow]Attempt recorded.[/yellow] {game.display_name} "
            f"{difficulty.display_name} {level}"
        )

    for achievement in unlocked:
        console.print(f"[bold magenta]Achievement unlocked:[/bold magenta] {achievement.title}")


@app.command()
def onboard(ctx: typer.Context):
    """Mark onboarding as finished."""
    tracker = _tracker(ctx)
    tracker.on_onboarding_finished()
    console.print("[green]Onboarding finished.[/green]")


@app.command()
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
):
    """Erase all progress and achievements."""
    if yes or typer.confirm("This will erase all your progress and achievements. Continue?"):
        tracker = _tracker(ctx)
        tracker.on_reset_requested()
        console.print("[green]Progress reset.[/green]")


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to listen on"),
):
    """Serve the progress API over HTTP."""
    import uvicorn

    from serene_arcade.web.app import create_app

    data_dir = ctx.obj.get("data_dir") if ctx.obj else None
    uvicorn.run(create_app(ProgressStore(LocalStore(data_dir))), host=host, port=port)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()

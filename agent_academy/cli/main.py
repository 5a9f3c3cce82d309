"""
CLI interface for Agent Academy.

Provides command-line access to the catalog, cost calculator, gateway and
progress store.
"""

import logging
import sys
from decimal import Decimal
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from agent_academy.config.loader import AppConfig, config_from_env, db_path_from_env, load_app_config
from agent_academy.core.feedback import feedback_with_defaults, is_passing
from agent_academy.core.gateway import CallerError, GatewayRequest, ModelGateway
from agent_academy.core.pricing import calculate_cost
from agent_academy.core.progress import ProgressData, ProgressTracker, fixed_identity
from agent_academy.core.selection import ModelRecommender, compare_models
from agent_academy.providers import build_provider_clients
from agent_academy.storage.repository import ProgressRepository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

USER_OPTION_HELP = "Signed-in user id; without it progress commands do nothing"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _format_cost(amount: Decimal) -> str:
    """Format an exact cost without scientific notation."""
    return f"${format(amount.normalize(), 'f')}"


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj["config"]


def _tracker(ctx: typer.Context, user: Optional[str]) -> ProgressTracker:
    return ProgressTracker(ProgressRepository(ctx.obj["db_path"]), fixed_identity(user))


def _models_table(title: str, models) -> Table:
    table = Table(title=title)
    table.add_column("Model", no_wrap=True)
    table.add_column("Name")
    table.add_column("Provider")
    table.add_column("Cost / 1K tokens", justify="right")
    table.add_column("Max tokens", justify="right")
    for model in models:
        table.add_row(
            model.id,
            model.name,
            model.provider.value,
            _format_cost(model.cost_per_1k_tokens),
            f"{model.max_tokens:,}",
        )
    return table


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML file with catalog and gateway defaults"
    ),
    db: Optional[str] = typer.Option(
        None,
        "--db",
        help="Progress database file"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """Agent Academy CLI."""
    _configure_logging(verbose)
    try:
        app_config = load_app_config(config) if config else config_from_env()
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    ctx.obj = {"config": app_config, "db_path": db or db_path_from_env()}
    if ctx.invoked_subcommand is None:
        console.print("Agent Academy - Use --help to see available commands")


@app.command()
def init(ctx: typer.Context):
    """Initialize the progress database."""
    try:
        initialize_schema(ctx.obj["db_path"])
        console.print("[green]✓[/] Database initialized successfully")
        sys.exit(EXIT_CODE_PASS)
    except Exception as e:
        console.print(f"[red]Error initializing database:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)


@app.command()
def models(ctx: typer.Context):
    """List the model catalog."""
    console.print(_models_table("Model Catalog", _config(ctx).catalog))


@app.command()
def compare(
    ctx: typer.Context,
    criterion: str = typer.Option(
        "cost",
        "--criterion",
        help="cost, performance or speed"
    )
):
    """List models ordered by a criterion."""
    try:
        ordered = compare_models(_config(ctx).catalog, criterion)
    except ValueError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    console.print(_models_table(f"Models by {criterion}", ordered))


@app.command()
def recommend(
    ctx: typer.Context,
    use_case: str = typer.Option(
        ...,
        "--use-case",
        "-u",
        help="education, prototyping, production or experimentation"
    ),
    budget: str = typer.Option(
        ...,
        "--budget",
        "-b",
        help="low, medium or high"
    )
):
    """Recommend a model for a use case and budget."""
    try:
        model = ModelRecommender(_config(ctx).catalog).recommend(use_case, budget)
    except ValueError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[bold]Recommended:[/bold] {model.name} ({model.id})")
    console.print(f"Provider: {model.provider.value}")
    console.print(f"Cost per 1K tokens: {_format_cost(model.cost_per_1k_tokens)}")
    if model.best_for:
        console.print(f"Best for: {', '.join(model.best_for)}")


@app.command()
def cost(
    ctx: typer.Context,
    model: str = typer.Option(..., "--model", "-m", help="Catalog model id"),
    input_tokens: int = typer.Option(0, "--input-tokens", "-i", min=0),
    output_tokens: int = typer.Option(0, "--output-tokens", "-o", min=0)
):
    """Calculate the cost of a token count on a model."""
    descriptor = _config(ctx).catalog.get(model)
    if descriptor is None:
        console.print(f"[red]Error:[/] Model {model} not supported")
        sys.exit(EXIT_CODE_FAIL)

    total = calculate_cost(input_tokens, output_tokens, descriptor)
    console.print(f"{descriptor.name}: {input_tokens + output_tokens:,} tokens")
    console.print(f"Cost: {_format_cost(total)}")


@app.command()
def ask(
    ctx: typer.Context,
    model: str = typer.Option(..., "--model", "-m", help="Catalog model id"),
    prompt: str = typer.Option(..., "--prompt", "-p"),
    system: Optional[str] = typer.Option(None, "--system", "-s"),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens"),
    temperature: Optional[float] = typer.Option(None, "--temperature", "-t"),
    feedback: bool = typer.Option(
        False,
        "--feedback",
        "-f",
        help="Parse the reply as SCORE/STRENGTHS/IMPROVEMENTS/REWRITTEN feedback"
    )
):
    """Send one prompt through the model gateway."""
    app_config = _config(ctx)
    gateway = ModelGateway(
        app_config.catalog,
        build_provider_clients(timeout=app_config.defaults.timeout),
        app_config.defaults
    )
    request = GatewayRequest(
        model=model,
        prompt=prompt,
        system=system,
        max_tokens=max_tokens,
        temperature=temperature
    )

    try:
        response = gateway.invoke(request)
    except CallerError as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)
    except Exception as e:
        logging.getLogger(__name__).exception("Gateway call failed")
        console.print(f"[red]Upstream error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    if feedback:
        parsed = feedback_with_defaults(response.content)
        verdict = "[green]PASS[/]" if is_passing(parsed) else "[yellow]KEEP PRACTICING[/]"
        console.print(f"\n[bold]Score:[/bold] {parsed.score} {verdict}")
        console.print("[bold]Strengths:[/bold]")
        for item in parsed.strengths:
            console.print(f"  - {item}")
        console.print("[bold]Improvements:[/bold]")
        for item in parsed.improvements:
            console.print(f"  - {item}")
        console.print(f"[bold]Rewrite:[/bold] {parsed.rewrite_suggestion}")
    else:
        console.print(response.content)

    usage = response.usage
    console.print(
        f"\n[dim]{response.model} ({response.provider.value}): "
        f"{usage.input_tokens} in / {usage.output_tokens} out, "
        f"cost {_format_cost(usage.total_cost)}[/]"
    )


@app.command()
def progress(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(None, "--user", envvar="AGENT_ACADEMY_USER", help=USER_OPTION_HELP)
):
    """Show a user's exercise progress."""
    tracker = _tracker(ctx, user)
    if not user:
        console.print("[yellow]Not signed in - no progress recorded for guests[/]")
        sys.exit(EXIT_CODE_PASS)

    entries = tracker.get_all_progress()
    if not entries:
        console.print(f"No progress recorded for {user}")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title=f"Progress for {user}")
    table.add_column("Exercise")
    table.add_column("Completed")
    table.add_column("Score", justify="right")
    table.add_column("Attempts", justify="right")
    table.add_column("Last attempt")
    for entry in entries:
        table.add_row(
            entry.exercise_id,
            "✓" if entry.completed else "",
            str(entry.score),
            str(entry.attempts),
            entry.last_attempt.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)

    profile = tracker.get_profile()
    if profile:
        console.print(
            f"Completed exercises: {profile.total_exercises_completed}, "
            f"total score: {profile.total_score}"
        )


@app.command()
def record(
    ctx: typer.Context,
    exercise: str = typer.Option(..., "--exercise", "-e"),
    score: int = typer.Option(..., "--score", min=0, max=100),
    attempts: int = typer.Option(1, "--attempts", min=0),
    completed: bool = typer.Option(False, "--completed"),
    user: Optional[str] = typer.Option(None, "--user", envvar="AGENT_ACADEMY_USER", help=USER_OPTION_HELP)
):
    """Record a score for an exercise."""
    tracker = _tracker(ctx, user)
    if not user:
        console.print("[yellow]Not signed in - progress not saved[/]")
        sys.exit(EXIT_CODE_PASS)

    saved = tracker.save_progress(ProgressData(
        exercise_id=exercise,
        completed=completed,
        score=score,
        attempts=attempts
    ))
    if not saved:
        console.print("[red]Error:[/] progress could not be saved (run `init` first?)")
        sys.exit(EXIT_CODE_FAIL)
    console.print(f"[green]✓[/] Saved {exercise} for {user}")


@app.command()
def attempt(
    ctx: typer.Context,
    exercise: str = typer.Option(..., "--exercise", "-e"),
    user: Optional[str] = typer.Option(None, "--user", envvar="AGENT_ACADEMY_USER", help=USER_OPTION_HELP)
):
    """Count one more attempt at an exercise."""
    tracker = _tracker(ctx, user)
    if not user:
        console.print("[yellow]Not signed in - attempt not recorded[/]")
        sys.exit(EXIT_CODE_PASS)

    if not tracker.increment_attempts(exercise):
        console.print("[red]Error:[/] attempt could not be recorded (run `init` first?)")
        sys.exit(EXIT_CODE_FAIL)
    entry = tracker.get_progress(exercise)
    attempts = entry.attempts if entry else 1
    console.print(f"[green]✓[/] {exercise}: {attempts} attempt(s)")


@app.command()
def stats(
    ctx: typer.Context,
    exercise: str = typer.Option(..., "--exercise", "-e")
):
    """Show attempt and completion figures for an exercise."""
    try:
        result = ProgressRepository(ctx.obj["db_path"]).get_exercise_stats(exercise)
    except Exception as e:
        console.print(f"[red]Error:[/] {str(e)}")
        sys.exit(EXIT_CODE_FAIL)

    console.print(f"[bold]Exercise:[/bold] {result.exercise_id}")
    console.print(f"Attempts: {result.total_attempts}")
    console.print(f"Completions: {result.total_completions}")
    console.print(f"Average score: {result.average_score:.1f}")
    console.print(f"Completion rate: {result.completion_rate:.0%}")


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(5000, "--port")
):
    """Run the gateway web server."""
    from agent_academy.web import create_app

    create_app(config=_config(ctx)).run(host=host, port=port)


if __name__ == "__main__":
    app()

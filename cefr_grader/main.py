"""
CEFR Grader CLI Application.

Provides a command-line interface for grading candidate submissions,
inspecting the task catalogue and model registry, and serving the API.
"""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Awaitable, Callable, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from cefr_grader.api.schemas import ExamRequest
from cefr_grader.config import Settings, get_settings
from cefr_grader.grading import GradingEngine
from cefr_grader.logging_config import configure_logging
from cefr_grader.models import (
    ExamResult,
    GradingOutcome,
    QuestionType,
    ResponseSubmission,
    RubricScore,
    ScoreTier,
    rating_tier,
)
from cefr_grader.registry import ModelRegistry
from cefr_grader.tasks import EXAM_TASKS, get_task

# Create Typer app
app = typer.Typer(
    name="cefr-grader",
    help="Rubric and CEFR grading for English proficiency exams",
    add_completion=False,
)

console = Console()

T = TypeVar("T")

_TIER_COLORS = {
    ScoreTier.EXCELLENT: "green",
    ScoreTier.GOOD: "yellow",
    ScoreTier.NEEDS_WORK: "red",
}

_BAND_COLORS = {
    "C2": "green",
    "C1": "green",
    "B2": "blue",
    "B1": "blue",
    "A2": "yellow",
    "A1": "red",
}


def _run_with_engine(settings: Settings, action: Callable[[GradingEngine], Awaitable[T]]) -> T:
    """Run one engine coroutine and close the engine afterwards."""

    async def runner() -> T:
        engine = GradingEngine(settings)
        try:
            return await action(engine)
        finally:
            await engine.aclose()

    return asyncio.run(runner())


@app.command()
def grade(
    question_type: Annotated[QuestionType, typer.Argument(help="Task type of the response")],
    response_file: Annotated[Path, typer.Argument(help="Text file with the candidate's response")],
    prompt: Annotated[
        Optional[str],
        typer.Option("--prompt", "-p", help="Task instruction (defaults to the exam task's)"),
    ] = None,
    heuristic: Annotated[
        bool,
        typer.Option("--heuristic", help="Skip the remote model and use the heuristic grader"),
    ] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show detailed output")] = False,
) -> None:
    """
    Grade a single task response on the four rubric dimensions.
    """
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)

    if not response_file.exists():
        console.print(f"[red]Error:[/red] Response file not found: {response_file}")
        raise typer.Exit(1)

    user_response = response_file.read_text(encoding="utf-8").strip()
    if not user_response:
        console.print(f"[red]Error:[/red] Response file is empty: {response_file}")
        raise typer.Exit(1)

    submission = ResponseSubmission(
        question_type=question_type,
        prompt=prompt if prompt is not None else get_task(question_type).prompt,
        user_response=user_response,
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Grading {question_type.value} response...", total=None)
        outcome = _run_with_engine(
            settings,
            lambda engine: engine.grade_response_outcome(submission, use_gateway=not heuristic),
        )

    if as_json:
        console.print_json(outcome.result.model_dump_json(exclude={"average"}))
        return

    _display_rubric(outcome, verbose)


@app.command()
def exam(
    submissions_file: Annotated[
        Path,
        typer.Argument(help="JSON file: {\"responses\": [{questionType, prompt, userResponse}, ...]}"),
    ],
    heuristic: Annotated[
        bool,
        typer.Option("--heuristic", help="Skip the remote model and use the heuristic classifier"),
    ] = False,
    as_json: Annotated[bool, typer.Option("--json", help="Print the result as JSON")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show detailed output")] = False,
) -> None:
    """
    Classify a complete exam on the CEFR scale.
    """
    settings = get_settings()
    configure_logging("DEBUG" if verbose else settings.log_level)

    if not submissions_file.exists():
        console.print(f"[red]Error:[/red] Submissions file not found: {submissions_file}")
        raise typer.Exit(1)

    try:
        data = json.loads(submissions_file.read_text(encoding="utf-8"))
        if isinstance(data, list):
            data = {"responses": data}
        request = ExamRequest.model_validate(data)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON:[/red] {e}")
        raise typer.Exit(1)
    except ValidationError as e:
        console.print(f"[red]Invalid exam submission:[/red] {e}")
        raise typer.Exit(1)

    submissions = [item.to_submission() for item in request.responses]

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(f"Grading exam ({len(submissions)} tasks)...", total=None)
        outcome = _run_with_engine(
            settings,
            lambda engine: engine.grade_exam_outcome(submissions, use_gateway=not heuristic),
        )

    if as_json:
        console.print_json(outcome.result.model_dump_json())
        return

    _display_exam(outcome, verbose)


@app.command()
def tasks() -> None:
    """
    Show the four exam tasks in order.
    """
    for index, task in enumerate(EXAM_TASKS, start=1):
        body = task.instruction
        if task.content:
            body += f"\n\n[dim]{task.content}[/dim]"
        console.print(Panel(body, title=f"Task {index}: {task.title}", subtitle=task.question_type.value))


@app.command()
def models() -> None:
    """
    List the model registry.
    """
    settings = get_settings()

    table = Table(title="Models")
    table.add_column("Key", style="cyan")
    table.add_column("Name")
    table.add_column("Provider")
    table.add_column("Gateway ID")
    table.add_column("Default", justify="center")

    for model in ModelRegistry().list_models():
        default = "✓" if model.key == settings.default_model_key else ""
        table.add_row(model.key, model.name, model.provider, model.gateway_id, default)

    console.print(table)


@app.command()
def health() -> None:
    """
    Check if the grading system is operational.

    Verifies configuration and gateway connectivity.
    """
    try:
        settings = get_settings()
        console.print("[bold]CEFR Grader Health Check[/bold]\n")

        console.print("[dim]Checking configuration...[/dim]")
        console.print(f"  Gateway URL: {settings.gateway_base_url}")
        console.print(f"  Model: {settings.default_model_key}")
        console.print(f"  API key configured: {'yes' if settings.gateway_api_key else 'no'}")
        console.print(f"  Timeout: {settings.gateway_timeout_seconds}s")

        console.print("\n[dim]Checking gateway connectivity...[/dim]")
        if _run_with_engine(settings, lambda engine: engine.health_check()):
            console.print("[green]✓ Gateway is reachable[/green]")
        else:
            console.print("[yellow]✗ Gateway is not reachable; grading will use heuristics[/yellow]")
            raise typer.Exit(1)

        console.print("\n[green]All systems operational[/green]")

    except ValidationError as e:
        console.print(f"[red]Configuration Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option("--host", help="Bind address")] = None,
    port: Annotated[Optional[int], typer.Option("--port", help="Port")] = None,
) -> None:
    """
    Run the grading API.
    """
    import uvicorn

    from cefr_grader.api import create_app

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


def _display_rubric(outcome: GradingOutcome, verbose: bool = False) -> None:
    """Display a rubric score as a colour-coded table."""
    score: RubricScore = outcome.result  # type: ignore[assignment]

    table = Table(title="Rubric Score")
    table.add_column("Dimension", style="cyan")
    table.add_column("Score", justify="right")

    for name, value in (
        ("Fluency", score.fluency),
        ("Lexical", score.lexical),
        ("Grammar", score.grammar),
        ("Task", score.task),
    ):
        color = _TIER_COLORS[rating_tier(value)]
        table.add_row(name, f"[{color}]{value:g}/5[/{color}]")

    console.print(table)
    console.print(Panel(score.feedback, title="Feedback"))

    if verbose:
        _display_path(outcome)


def _display_exam(outcome: GradingOutcome, verbose: bool = False) -> None:
    """Display an exam result with its band description."""
    result: ExamResult = outcome.result  # type: ignore[assignment]
    color = _BAND_COLORS[result.overall_score.value]

    console.print(
        Panel(
            f"[{color}][bold]{result.overall_score.value}[/bold][/{color}]\n"
            f"{result.overall_score.description}",
            title="Overall CEFR Level",
        )
    )
    console.print(Panel(result.explanation, title="Explanation"))

    if verbose:
        _display_path(outcome)


def _display_path(outcome: GradingOutcome) -> None:
    if outcome.is_fallback:
        console.print("[yellow]Graded by heuristic fallback[/yellow]")
        return
    console.print("[dim]Graded by remote model[/dim]")
    if outcome.metrics is not None:
        first = outcome.metrics.time_to_first_chunk_ms
        console.print(
            f"[dim]First chunk: {first:.0f}ms, total: {outcome.metrics.total_time_ms:.0f}ms, "
            f"chunks: {outcome.metrics.chunk_count}[/dim]"
            if first is not None
            else f"[dim]Total: {outcome.metrics.total_time_ms:.0f}ms[/dim]"
        )


if __name__ == "__main__":
    app()

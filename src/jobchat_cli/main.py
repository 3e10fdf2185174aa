"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

import typer
from pydantic import BaseModel
from rich.console import Console

from jobchat_agents.observability import configure_logging, configure_tracing
from jobchat_agents.orchestrator.factories import create_service
from jobchat_agents.orchestrator.service import InterviewService
from jobchat_core.config.settings import Settings
from jobchat_core.exceptions import JobChatError

app = typer.Typer(
    name="jobchat",
    help="LLM-driven structured interview backend",
)
console = Console()


def _load_settings(verbose: bool) -> Settings:
    """Load settings from the environment and configure observability."""
    settings = Settings()  # type: ignore[call-arg]
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)
    configure_tracing(settings)
    return settings


def _read_history(path: Path | None) -> list[dict[str, Any]]:
    """Read a JSON array of {role, content} turns, or nothing."""
    if path is None:
        return []
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        console.print(
            f"[red]Error:[/red] history file is not valid JSON ({e.msg}, line {e.lineno})"
        )
        raise typer.Exit(code=1) from e
    if not isinstance(data, list):
        console.print("[red]Error:[/red] history file must contain a JSON array")
        raise typer.Exit(code=1)
    return data


def _read_text(text: str, text_file: Path | None) -> str:
    """Resolve inline text or the contents of a file."""
    if text_file is not None:
        return text_file.read_text().strip()
    return text


def _run(
    verbose: bool,
    call: Callable[[InterviewService], Coroutine[Any, Any, BaseModel]],
) -> None:
    """Build the service, run one operation, and print its JSON result."""
    settings = _load_settings(verbose)

    async def _main() -> BaseModel:
        service = await create_service(settings)
        try:
            return await call(service)
        finally:
            await service.close()

    try:
        result = asyncio.run(_main())
    except JobChatError as exc:
        console.print(f"[red]Error ({exc.code}):[/red] {exc.message}")
        if verbose and exc.details:
            console.print(f"[dim]{exc.details}[/dim]")
        raise typer.Exit(code=1) from exc

    console.print_json(result.model_dump_json())


@app.command("create-application")
def create_application(
    candidate_id: str = typer.Argument(..., help="Candidate document id"),
    job_id: str = typer.Argument(..., help="Job document id"),
    org_id: str = typer.Argument(..., help="Organization document id"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Create (or fetch) the application for a candidate and job."""
    _run(verbose, lambda s: s.create_application(candidate_id, job_id, org_id))


@app.command()
def turn(
    application_id: str = typer.Argument(..., help="Application document id"),
    candidate_id: str = typer.Option(..., "--candidate", help="Candidate document id"),
    job_id: str = typer.Option(..., "--job", help="Job document id"),
    org_id: str = typer.Option(..., "--org", help="Organization document id"),
    message: str = typer.Option(..., "--message", "-m", help="Candidate message"),
    history_file: Path | None = typer.Option(
        None, "--history-file", help="JSON file with the conversation so far", exists=True
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Send one interview turn and print the interviewer's reply."""
    history = _read_history(history_file)
    _run(
        verbose,
        lambda s: s.send_interview_turn(
            application_id, candidate_id, job_id, org_id, message, history
        ),
    )


@app.command()
def report(
    application_id: str = typer.Argument(..., help="Application document id"),
    report_id: str = typer.Option(..., "--report", help="Report document id"),
    candidate_id: str = typer.Option(..., "--candidate", help="Candidate document id"),
    job_id: str = typer.Option(..., "--job", help="Job document id"),
    org_id: str = typer.Option(..., "--org", help="Organization document id"),
    history_file: Path = typer.Option(
        ..., "--history-file", help="JSON file with the full transcript", exists=True
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Generate and store the final interview report."""
    history = _read_history(history_file)
    _run(
        verbose,
        lambda s: s.generate_report(
            candidate_id, job_id, org_id, application_id, report_id, history
        ),
    )


@app.command()
def extract(
    org_id: str = typer.Argument(..., help="Organization document id"),
    job_id: str = typer.Argument(..., help="Job document id"),
    text: str = typer.Option("", "--text", help="Job ad text"),
    text_file: Path | None = typer.Option(
        None, "--text-file", help="File containing the job ad", exists=True
    ),
    instructions: str | None = typer.Option(
        None, "--instructions", help="Extra extraction instructions"
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Extract structured job data from free text and save it to the job."""
    text_input = _read_text(text, text_file)
    if not text_input:
        console.print("[red]Error:[/red] Provide --text or --text-file", style="bold")
        raise typer.Exit(code=1)
    _run(verbose, lambda s: s.extract_and_save_data(org_id, job_id, text_input, instructions))


@app.command("extract-org")
def extract_org(
    org_id: str = typer.Argument(..., help="Organization document id"),
    text: str = typer.Option("", "--text", help="Company profile text"),
    text_file: Path | None = typer.Option(
        None, "--text-file", help="File containing the company profile", exists=True
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Extract an organization profile from free text and save it."""
    text_input = _read_text(text, text_file)
    if not text_input:
        console.print("[red]Error:[/red] Provide --text or --text-file", style="bold")
        raise typer.Exit(code=1)
    _run(verbose, lambda s: s.extract_and_save_org_data(org_id, text_input))


@app.command()
def version() -> None:
    """Show version."""
    console.print("jobchat v0.1.0")


if __name__ == "__main__":
    app()

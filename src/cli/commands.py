"""CLI commands using Typer."""

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from src.automation.errors import AuthenticationTimeout
from src.automation.failure_store import get_failure_sink
from src.automation.models import RunStats
from src.automation.orchestrator import Orchestrator
from src.browser_service import BrowserConfig, BrowserSession
from src.config import configure_logging, settings
from src.integrations.langfuse.tracing import flush_langfuse

app = typer.Typer(
    name="autoapply",
    help="Automated job applications on the Greenhouse job board",
    add_completion=False,
)

console = Console()

HeadlessOption = Annotated[
    bool | None,
    typer.Option("--headless/--headed", help="Override PLAYWRIGHT_HEADLESS"),
]


def print_stats(stats: RunStats, title: str) -> None:
    """Render run statistics and the failure list."""
    color = "red" if stats.aborted else "green"
    console.print(
        Panel(
            f"[bold]Found:[/bold] {stats.found}\n"
            f"[bold green]Applied:[/bold green] {stats.applied}\n"
            f"[bold red]Failed:[/bold red] {stats.failed}"
            + ("\n[yellow]Stopped early[/yellow]" if stats.stopped else ""),
            title=title,
            border_style=color,
        )
    )

    if stats.failures:
        table = Table(title="Failed Applications")
        table.add_column("Kind", style="red")
        table.add_column("Title")
        table.add_column("Reason", style="dim")
        for outcome in stats.failures:
            table.add_row(outcome.kind.value, outcome.title, outcome.reason)
        console.print(table)

    if stats.error:
        console.print(f"\n[red]Error:[/red] {stats.error}")


def finish(stats: RunStats, title: str) -> None:
    flush_langfuse()
    print_stats(stats, title)
    if stats.aborted:
        raise typer.Exit(1)


@app.command()
def run(
    filter_url: Annotated[
        str | None,
        typer.Option("--filter-url", "-u", help="Search page with filters already applied"),
    ] = None,
    max_applications: Annotated[
        int | None, typer.Option("--max", "-m", help="Maximum applications this run")
    ] = None,
    headless: HeadlessOption = None,
):
    """
    Discover matching jobs and apply to them.

    Example:
        autoapply run --max 5
        autoapply run --filter-url "https://my.greenhouse.io/jobs?query=python"
    """
    configure_logging()

    orchestrator = Orchestrator.from_settings(headless=headless)
    if max_applications:
        orchestrator.max_applications = max_applications

    console.print(
        Panel(
            f"[bold]Starting application run[/bold]\n\n"
            f"Keywords: {settings.search_keywords}\n"
            f"Max applications: {orchestrator.max_applications}\n"
            f"Delay between applications: {orchestrator.delay_between_apps:g}s",
            title="Auto-Apply",
        )
    )

    stats = asyncio.run(orchestrator.run(filter_url=filter_url))
    finish(stats, "Run Summary")


@app.command()
def login(
    email: Annotated[
        str | None,
        typer.Option("--email", "-e", envvar="GREENHOUSE_EMAIL", help="Pre-fill the sign-in email"),
    ] = None,
):
    """
    Open a visible browser and save the session once sign-in completes.

    Example:
        autoapply login --email me@example.com
    """
    configure_logging()

    timeout_s = settings.login_timeout_ms // 1000
    console.print(
        Panel(
            f"[bold]Sign in to Greenhouse in the browser window[/bold]\n\n"
            f"Waiting up to {timeout_s}s. The session is saved to {settings.session_state_path}",
            title="Auto-Apply - Login",
        )
    )

    async def run_login() -> None:
        config = BrowserConfig.from_settings(settings, headless=False)
        async with BrowserSession(config=config) as session:
            await session.login(email)

    try:
        asyncio.run(run_login())
    except AuthenticationTimeout as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    console.print("[green]Session saved[/green]")


@app.command()
def apply(
    url: Annotated[str, typer.Argument(help="Job posting URL")],
    title: Annotated[str | None, typer.Option("--title", "-t", help="Job title for logs")] = None,
    headless: HeadlessOption = None,
):
    """
    Apply to a single job posting by URL.

    Example:
        autoapply apply https://my.greenhouse.io/view_job?job_id=123 --title "Backend Engineer"
    """
    configure_logging()

    orchestrator = Orchestrator.from_settings(headless=headless)
    stats = asyncio.run(orchestrator.apply_single(url, title))
    finish(stats, "Application Result")


@app.command()
def failed():
    """
    List stored failed applications.

    Example:
        autoapply failed
    """
    configure_logging()

    records = asyncio.run(get_failure_sink().get_all())
    if not records:
        console.print("[green]No failed applications stored[/green]")
        return

    table = Table(title=f"Failed Applications ({len(records)})")
    table.add_column("When", style="dim")
    table.add_column("Kind", style="red")
    table.add_column("Title")
    table.add_column("Reason")
    table.add_column("URL", style="cyan")
    for record in records:
        table.add_row(record.timestamp[:16], record.kind, record.title, record.reason, record.url)
    console.print(table)


@app.command()
def retry_failed(
    headless: HeadlessOption = None,
):
    """
    Re-attempt every stored failed application.

    Example:
        autoapply retry-failed
    """
    configure_logging()

    orchestrator = Orchestrator.from_settings(headless=headless)
    stats = asyncio.run(orchestrator.retry_failed())
    finish(stats, "Retry Summary")


@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port for the API")] = 8000,
):
    """
    Start the HTTP API for on-demand runs.

    Example:
        autoapply serve --port 8000
    """
    import uvicorn

    console.print(
        Panel(
            f"[bold]Starting API[/bold]\n\n"
            f"Host: {host}\n"
            f"Port: {port}\n\n"
            f"Press Ctrl+C to stop",
            title="Auto-Apply - API",
        )
    )

    uvicorn.run("src.main:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    app()

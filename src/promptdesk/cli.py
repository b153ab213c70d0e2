"""
promptdesk CLI - inspect payloads, validate prompts and run the API.

Commands:
    promptdesk assemble   Print both model payloads and the token budget check
    promptdesk direct     Print the model-free prompt for a topic
    promptdesk validate   Quality-gate and checklist-score a prompt file
    promptdesk checklist  Print a checklist
    promptdesk serve      Run the HTTP API with uvicorn
"""

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .assembly import assemble
from .config import load_settings
from .context import AppContext, build_context
from .display import format_name, level_name
from .errors import PromptDeskError
from .inputs import RequestOptions, UserInput
from .pipeline import PromptPipeline
from .rulepacks.models import Level, OutputFormat

app = typer.Typer(help="Instruction-prompt generator for National Assembly staff documents")
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _context() -> AppContext:
    settings = load_settings()
    return build_context(settings)


def _user_input(
    topic: str,
    fmt: OutputFormat,
    level: Level,
    context: str | None,
    mode: str | None,
    requirements: list[str] | None,
    strict: bool,
) -> UserInput:
    try:
        return UserInput(
            topic=topic,
            format=fmt,
            level=level,
            context=context,
            mode=mode,
            additional_requirements=requirements or [],
            options=RequestOptions(strict_mode=strict),
        )
    except ValidationError as e:
        for err in e.errors():
            field = ".".join(str(p) for p in err["loc"])
            console.print(f"[bold red]Invalid input:[/bold red] {field}: {err['msg']}")
        raise typer.Exit(2)


def _fail(error: PromptDeskError) -> None:
    console.print(f"[bold red]{error.kind.value}:[/bold red] {error.error.message}")
    raise typer.Exit(1)


# =============================================================================
# ASSEMBLE
# =============================================================================


@app.command("assemble")
def assemble_cmd(
    topic: str = typer.Argument(..., help="Document topic"),
    fmt: OutputFormat = typer.Option(OutputFormat.PRESS_RELEASE, "--format", "-f"),
    level: Level = typer.Option(Level.INTERMEDIATE, "--level", "-l"),
    context: str = typer.Option(None, "--context", "-c", help="Background situation"),
    mode: str = typer.Option(None, "--mode", "-m", help="Rule-pack mode"),
    requirement: list[str] = typer.Option(None, "--requirement", "-r", help="Extra requirement (repeatable)"),
    strict: bool = typer.Option(False, "--strict", help="Demand sources and fact verification"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
):
    """Show the instruction and task payloads that would be sent to the model."""
    _setup_logging(verbose)
    user_input = _user_input(topic, fmt, level, context, mode, requirement, strict)
    ctx = _context()
    pipeline = PromptPipeline(ctx)

    try:
        pack = ctx.rule_packs.load(fmt, ctx.settings.default_version)
    except PromptDeskError as e:
        _fail(e)
    instruction_config, task_config = pipeline.build_configs(user_input, pack)
    payloads = assemble(instruction_config, task_config)
    budget = ctx.governor.check(payloads.instruction, payloads.task, fmt, level)

    console.print(Panel(payloads.instruction, title="instruction (system)", border_style="blue"))
    console.print(Panel(payloads.task, title="task (user)", border_style="cyan"))

    table = Table(title=f"Token budget: {format_name(fmt)} / {level_name(level)}")
    table.add_column("Estimated", justify="right")
    table.add_column("Allowance", justify="right")
    table.add_column("Ceiling", justify="right")
    table.add_column("Status")
    status = "[green]OK[/green]" if budget.allowed else "[red]OVER BUDGET[/red]"
    table.add_row(str(budget.estimated), str(budget.allowance), str(budget.ceiling), status)
    console.print(table)

    for warning in budget.warnings:
        console.print(f"[yellow]{warning}[/yellow]")
    for suggestion in budget.suggestions:
        console.print(f"  - {suggestion}")
    if not budget.allowed:
        raise typer.Exit(1)


# =============================================================================
# DIRECT
# =============================================================================


@app.command()
def direct(
    topic: str = typer.Argument(..., help="Document topic"),
    fmt: OutputFormat = typer.Option(OutputFormat.PRESS_RELEASE, "--format", "-f"),
    level: Level = typer.Option(Level.INTERMEDIATE, "--level", "-l"),
    context: str = typer.Option(None, "--context", "-c"),
    mode: str = typer.Option(None, "--mode", "-m"),
    requirement: list[str] = typer.Option(None, "--requirement", "-r"),
    strict: bool = typer.Option(False, "--strict"),
):
    """Print a finished prompt built from the rule-pack, without calling a model."""
    _setup_logging(False)
    user_input = _user_input(topic, fmt, level, context, mode, requirement, strict)
    result = PromptPipeline(_context()).direct(user_input)
    if not result.ok:
        console.print(f"[bold red]{result.error.kind.value}:[/bold red] {result.error.message}")
        raise typer.Exit(1)
    console.print(result.data["prompt"], markup=False, highlight=False)


# =============================================================================
# VALIDATE
# =============================================================================


@app.command()
def validate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Prompt text file"),
    fmt: OutputFormat = typer.Option(OutputFormat.PRESS_RELEASE, "--format", "-f"),
    level: Level = typer.Option(Level.INTERMEDIATE, "--level", "-l"),
):
    """Run the quality gate and checklist scoring on a generated prompt."""
    _setup_logging(False)
    text = path.read_text(encoding="utf-8")
    ctx = _context()
    report = ctx.quality_gate.evaluate(text, fmt, level)

    table = Table(title=f"Quality gate: {path.name}")
    table.add_column("Check", style="bold")
    table.add_column("Status")
    for name in report.scorecard.passed:
        table.add_row(name, "[green]PASS[/green]")
    for name in report.scorecard.failed:
        table.add_row(name, "[red]FAIL[/red]")
    console.print(table)

    for error in report.validation.errors:
        console.print(f"[bold red]ERROR[/bold red] {error}")
    for warning in report.validation.warnings:
        console.print(f"[yellow]WARN[/yellow] {warning}")

    try:
        outcome = ctx.checklists.evaluate(text, fmt, level)
        console.print(f"\nChecklist: {len(outcome.passed)}/{outcome.total} items ({outcome.score}%)")
    except PromptDeskError as e:
        console.print(f"\n[yellow]Checklist unavailable:[/yellow] {e.error.message}")

    verdict = "[bold green]VALID[/bold green]" if report.is_valid else "[bold red]INVALID[/bold red]"
    console.print(f"\n{verdict} score {report.overall_score}/100")
    if not report.is_valid:
        raise typer.Exit(1)


# =============================================================================
# CHECKLIST
# =============================================================================


@app.command()
def checklist(
    fmt: OutputFormat = typer.Option(OutputFormat.PRESS_RELEASE, "--format", "-f"),
    level: Level = typer.Option(Level.INTERMEDIATE, "--level", "-l"),
    version: str = typer.Option("v1", "--version"),
):
    """Print the checklist for a format and level."""
    _setup_logging(False)
    ctx = _context()
    try:
        categories = ctx.checklists.load(fmt, level, version)
        meta = ctx.checklists.metadata(fmt, level, version)
    except PromptDeskError as e:
        _fail(e)

    table = Table(title=meta["title"])
    table.add_column("Category", style="bold")
    table.add_column("Item")
    for category in categories:
        for i, item in enumerate(category.items):
            table.add_row(category.category if i == 0 else "", item)
    console.print(table)


# =============================================================================
# SERVE
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8000, "--port"),
    reload: bool = typer.Option(False, "--reload"),
):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "promptdesk.api.gateway:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    app()

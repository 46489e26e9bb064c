"""CLI entry point for the AI-enhanced testing pipeline."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.ai.client import AIClient, ai_available
from src.models.config import AppConfig, NavigateAction, RunConfig, ScreenshotAction, WaitAction
from src.models.errors import ErrorMessage
from src.orchestrator import AIEnhancedTester, AITestingDisabledError
from src.reporter.markdown_report import generate_smart_error_report

console = Console()
logger = logging.getLogger(__name__)

DEFAULT_CONFIG = "ai-tester.yaml"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _make_ai_client(cfg: RunConfig) -> AIClient | None:
    if not ai_available():
        return None
    try:
        return AIClient(model=cfg.settings.ai_model, max_tokens=cfg.settings.ai_max_summary_tokens)
    except EnvironmentError as e:
        logger.warning("AI client unavailable: %s. Using basic summaries.", e)
        return None


def _load_config(config: str) -> RunConfig:
    try:
        return RunConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'ai-tester init' to create a default config.")
        sys.exit(1)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """AI-Enhanced Testing: vision, test generation and smart error detection"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path (YAML or JSON)")
def run(config: str) -> None:
    """Run the configured actions through the AI-enhanced pipeline."""
    cfg = _load_config(config)
    tester = AIEnhancedTester(cfg.settings.ai_testing, ai_client=_make_ai_client(cfg))

    try:
        result = tester.run(cfg)
    except AITestingDisabledError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    reports = tester.generate_report(result, cfg.output)

    console.print("\n[bold green]AI-Enhanced Testing Complete[/bold green]")
    table = Table(title="Results Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Name", cfg.name)
    table.add_row("Duration", f"{result.duration_seconds:.1f}s")
    if result.execution_result is not None:
        ex = result.execution_result
        table.add_row("Actions", str(ex.actions_executed))
        table.add_row("Failed", f"[red]{ex.actions_failed}[/red]")
    table.add_row("Visual Elements", str(len(result.visual_elements)))
    table.add_row("Generated Tests", str(len(result.generated_tests)))
    table.add_row("Errors Detected", f"[red]{len(result.errors)}[/red]")
    table.add_row("Enhancements", str(len(result.enhancements)))
    console.print(table)

    for record in result.phase_trail:
        if record.status != "completed":
            console.print(f"  [yellow]{record.phase.value}[/yellow]: {record.status} ({record.reason})")
    for kind, path in reports.items():
        console.print(f"  {kind} report: [blue]{path}[/blue]")


@cli.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default="./output", help="Report output directory")
def detect(source: str, output: str) -> None:
    """Detect errors in a log file, or in a page state snapshot (.json)."""
    path = Path(source)
    tester = AIEnhancedTester()

    if path.suffix.lower() == ".json":
        with open(path) as f:
            page_state = json.load(f)
        try:
            errors = tester.detect_errors(page_state)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            sys.exit(1)
    else:
        lines = [line for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
        messages = [ErrorMessage(message=line, source=path.name) for line in lines]
        errors = tester.classifier.detect_errors(messages)

    report = tester.save_error_report(errors, Path(output) / "smart_error_report.json")
    analysis = tester.classifier.analyze_errors(errors)
    markdown = generate_smart_error_report(errors, analysis, output)

    table = Table(title=f"Detected Errors ({len(errors)})")
    table.add_column("Category", style="bold")
    table.add_column("Count")
    for category, count in analysis.error_categories.items():
        table.add_row(category, str(count))
    console.print(table)
    console.print(f"  JSON report: [blue]{report}[/blue]")
    console.print(f"  Markdown report: [blue]{markdown}[/blue]")


@cli.command()
@click.argument("page_state_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", default="ai_generated_tests.yaml", help="Where to write the test config")
def generate(page_state_file: str, output: str) -> None:
    """Generate a runnable test config from a page state snapshot."""
    with open(page_state_file) as f:
        page_state = json.load(f)

    tester = AIEnhancedTester()
    try:
        tests = tester.generate_tests(page_state)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    path = tester.save_tests(tests, output)
    console.print(f"[green]Generated {len(tests)} tests:[/green] {path}")


@cli.command()
@click.option("--target", "-t", prompt="Target URL", help="Web application URL to test")
@click.option("--config", "-c", default=DEFAULT_CONFIG, help="Config file path to create")
def init(target: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = RunConfig(
        name="AI-Enhanced Smoke Test",
        apps=[AppConfig(name="web-app", type="web", url=target)],
        actions=[
            NavigateAction(name="open_home", value=target),
            WaitAction(name="settle", wait_time=2),
            ScreenshotAction(name="home_screenshot", value="home.png"),
        ],
    )
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print(f"  [blue]ai-tester run -c {config_path}[/blue]")


if __name__ == "__main__":
    cli()

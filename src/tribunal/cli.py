"""Command-line interface.

    tribunal evaluate [TYPES...]       judge recorded scenarios per tool
    tribunal datasets [TOOL]           show what has been recorded
    tribunal synthesize                combine per-tool results platform-wide
"""

import asyncio
import logging
import os
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tribunal import __version__
from tribunal.evaluation.analyzer import DatasetAnalyzer
from tribunal.evaluation.comparative import EVALUATORS
from tribunal.evaluation.metadata import load_evaluation_metadata, validate_metadata_freshness
from tribunal.evaluation.runner import EvaluationRun, detect_available_datasets, run_evaluation
from tribunal.foundation.config import TribunalConfig, get_config, load_config
from tribunal.foundation.errors import PipelineInitializationError, TribunalError
from tribunal.foundation.logging import configure_logging
from tribunal.models.factory import create_judge
from tribunal.synthesis.graphs import AVAILABLE_GRAPHS
from tribunal.synthesis.synthesizer import PlatformSynthesizer

logger = logging.getLogger(__name__)

console = Console()
# Diagnostics go to stderr so stdout stays clean for piping
stderr_console = Console(stderr=True)


def load_dotenv() -> None:
    """Load .env file if it exists."""
    env_file = Path.cwd() / ".env"
    if env_file.exists():
        with open(env_file) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, _, value = line.partition("=")
                    os.environ.setdefault(key.strip(), value.strip().strip("'\""))


def _fail(error: Exception | str) -> None:
    stderr_console.print(f"[red]Error:[/red] {escape(str(error))}", highlight=False)
    if isinstance(error, TribunalError):
        for hint in error.recovery_hints:
            stderr_console.print(f"[dim]  • {escape(hint)}[/dim]", highlight=False)
    sys.exit(1)


class TribunalGroup(click.Group):
    """Group that turns any uncaught failure into `Error: ...` and exit 1."""

    def invoke(self, ctx: click.Context):
        try:
            return super().invoke(ctx)
        except (click.exceptions.Exit, click.exceptions.Abort, click.ClickException):
            raise
        except Exception as e:
            logger.debug("Command failed", exc_info=True)
            _fail(e)


def _config(ctx: click.Context) -> TribunalConfig:
    return ctx.obj["config"]


@click.group(cls=TribunalGroup)
@click.option("--debug", is_flag=True, help="Verbose logging to stderr")
@click.option("--log-file", is_flag=True, help="Also keep a session log in .tribunal/logs/")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: .tribunal/config.yaml)",
)
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, debug: bool, log_file: bool, config_path: Path | None) -> None:
    """Tribunal - comparative multi-model evaluation.

    \b
    Typical flow:
        tribunal datasets
        tribunal evaluate remediation policy
        tribunal synthesize --graphs performance-tiers,cost-vs-quality
    """
    load_dotenv()
    configure_logging(debug=debug, persist=log_file)
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path) if config_path else get_config()


@main.command()
@click.argument("types", nargs=-1, type=click.Choice(list(EVALUATORS)))
@click.option(
    "--allow-stale-metadata",
    is_flag=True,
    help="Warn instead of failing when model metadata is missing a date or is too old",
)
@click.pass_context
def evaluate(ctx: click.Context, types: tuple[str, ...], allow_stale_metadata: bool) -> None:
    """Judge every multi-model scenario of the given evaluator TYPES.

    With no TYPES, runs every evaluator that has recorded datasets.
    """
    config = _config(ctx)
    metadata = load_evaluation_metadata(config.paths.metadata_file)
    try:
        validate_metadata_freshness(metadata, config.evaluation.metadata_max_age_days)
    except PipelineInitializationError as e:
        if not allow_stale_metadata:
            raise
        stderr_console.print(f"[yellow]Warning:[/yellow] {escape(str(e))}", highlight=False)

    available = detect_available_datasets(config, types or None)
    selected = [t for t, present in available.items() if present]
    for eval_type in types:
        if not available[eval_type]:
            stderr_console.print(
                f"[yellow]Warning:[/yellow] no datasets for {eval_type} in {config.paths.datasets_dir}",
                highlight=False,
            )
    if not selected:
        _fail(f"No datasets found in {config.paths.datasets_dir}")

    judge = create_judge(config.judge)
    console.print(f"🔬 Running {len(selected)} evaluation(s): {', '.join(selected)}")

    async def run_all() -> list[EvaluationRun]:
        return [await run_evaluation(t, judge, config, metadata) for t in selected]

    for run in asyncio.run(run_all()):
        _print_run(run)


def _print_run(run: EvaluationRun) -> None:
    console.print()
    console.print(f"[bold]{run.evaluation_type}[/bold]: {len(run.results)} scenario(s) judged")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Scenario", style="cyan")
    table.add_column("Winner", style="green")
    table.add_column("Score", justify="right")
    table.add_column("Models", justify="right")
    for result in run.results:
        table.add_row(
            result.scenario_id or result.key,
            result.best_model,
            f"{result.score:.2f}",
            str(result.model_count),
        )
    console.print(table)

    for failed in run.failed:
        console.print(f"[yellow]⚠️  {escape(failed.scenario_id)}[/yellow]: {escape(failed.comment)}")
    if run.final_assessment is None:
        console.print("[dim]Final assessment unavailable[/dim]")
    for path in run.report_paths:
        console.print(f"[dim]   {path}[/dim]")


@main.command()
@click.argument("tool", required=False)
@click.pass_context
def datasets(ctx: click.Context, tool: str | None) -> None:
    """Show recorded dataset statistics, optionally for one TOOL.

    TOOL may be an evaluator type (remediation) or a tool name (remediate).
    """
    config = _config(ctx)
    tools = [evaluator.tool_name for evaluator in EVALUATORS.values()]
    if tool is not None:
        if tool in EVALUATORS:
            tools = [EVALUATORS[tool].tool_name]
        elif tool in tools:
            tools = [tool]
        else:
            _fail(f"Unknown tool '{tool}' (choose from {', '.join(EVALUATORS)})")

    analyzer = DatasetAnalyzer(config)
    table = Table(show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Datasets", justify="right")
    table.add_column("Models")
    table.add_column("Scenarios", justify="right")
    table.add_column("Comparable", justify="right")
    table.add_column("Single-model", style="dim")

    for name in tools:
        stats = analyzer.get_dataset_stats(name)
        table.add_row(
            name,
            str(stats.total_datasets),
            ", ".join(stats.available_models) or "[dim]-[/dim]",
            str(stats.scenarios),
            str(stats.comparable_scenarios),
            ", ".join(stats.solo_scenarios) or "-",
        )

    console.print(table)


@main.command()
@click.option(
    "--graphs",
    "graph_list",
    default=None,
    help=f"Comma-separated graphs to render (default: all of {', '.join(AVAILABLE_GRAPHS)})",
)
@click.option("--skip-report", is_flag=True, help="Render graphs only, without the narrative report")
@click.pass_context
def synthesize(ctx: click.Context, graph_list: str | None, skip_report: bool) -> None:
    """Combine per-tool results into the platform-wide decision report."""
    config = _config(ctx)
    graph_names = None
    if graph_list is not None:
        graph_names = [name.strip() for name in graph_list.split(",") if name.strip()]

    metadata = load_evaluation_metadata(config.paths.metadata_file)
    synthesizer = PlatformSynthesizer(create_judge(config.judge), config, metadata=metadata)
    report = asyncio.run(
        synthesizer.generate_platform_wide_analysis(graph_names=graph_names, skip_narrative=skip_report)
    )

    analysis = report.analysis
    console.print(
        f"📊 {len(analysis.model_performances)} model(s) across {len(analysis.tools)} tool(s)"
    )
    for result in report.graphs.values():
        if result.success:
            console.print(f"  [green]✓[/green] {result.name}: {result.path}")
        else:
            console.print(f"  [yellow]⚠️[/yellow]  {result.name}: {escape(result.error or 'failed')}")
    if report.report_path is not None:
        console.print(f"✅ Report saved: {report.report_path}")

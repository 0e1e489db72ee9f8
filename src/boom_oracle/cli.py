"""Command line interface for Boom Oracle."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from boom_oracle.core.config import Config, load_config
from boom_oracle.core.log import setup_logging
from boom_oracle.core.types import Analysis, PredictionStatus, RangeBin
from boom_oracle.core.validation import InvalidTickError, parse_tick
from boom_oracle.data.repository import SqlRepository
from boom_oracle.data.seed import DEFAULT_SEED_TICKS
from boom_oracle.data.store import MemoryStore
from boom_oracle.db.session import init_db, make_engine, make_session_factory
from boom_oracle.feed.simulator import TickSimulator
from boom_oracle.session import TickSession
from boom_oracle.tracking.metrics import summarize

console = Console()


def _load(config_path: Optional[str]) -> Config:
    return load_config(Path(config_path) if config_path else None)


def _repository(config: Config) -> SqlRepository:
    engine = make_engine(config.storage.database_url)
    init_db(engine)
    return SqlRepository(make_session_factory(engine))


def _read_values(values: tuple[str, ...], file: Optional[str]) -> list[int]:
    raw: list[str] = list(values)
    if file:
        text = Path(file).read_text(encoding="utf-8")
        raw.extend(text.replace(",", " ").split())
    return [parse_tick(v) for v in raw]


def _ranges_table(title: str, bins: tuple[RangeBin, ...]) -> Table:
    table = Table(title=title)
    table.add_column("Range")
    table.add_column("Bounds", justify="right")
    table.add_column("Count", justify="right")
    table.add_column("Probability", justify="right")
    table.add_column("Recommended", justify="center")
    for b in bins:
        upper = "∞" if b.max is None else str(b.max)
        table.add_row(
            b.name,
            f"{b.min}-{upper}",
            str(b.count),
            f"{b.probability:.1f}%",
            "[green]yes[/green]" if b.recommended else "[dim]no[/dim]",
        )
    return table


def _print_analysis(analysis: Analysis) -> None:
    window = ", ".join(str(v) for v in analysis.window) or "-"
    prediction = analysis.prediction

    if analysis.status == PredictionStatus.NONE:
        console.print(Panel(
            f"No pattern match found for the last {analysis.pattern_length} ticks [{window}].\n"
            "The window is unique so far, or there is not enough data.",
            title="No prediction",
            style="yellow",
        ))
    elif analysis.status == PredictionStatus.BELOW_THRESHOLD:
        console.print(Panel(
            f"Pattern [{window}] predicts {prediction.prediction} with confidence "
            f"{prediction.confidence}%, below the minimum of {analysis.confidence_threshold:g}%.",
            title="Confidence too low",
            style="yellow",
        ))
    else:
        outcomes = ", ".join(str(v) for v in prediction.next_values)
        console.print(Panel(
            f"Pattern [{window}] seen {prediction.occurrences} time(s)\n"
            f"Prediction: [bold]{prediction.prediction}[/bold]  "
            f"Confidence: [bold]{prediction.confidence}%[/bold]\n"
            f"Min {prediction.range.min}  Max {prediction.range.max}  "
            f"Most common {prediction.range.most_common}\n"
            f"Outcomes: {outcomes}",
            title="Prediction",
            style="bold green",
        ))
        console.print(_ranges_table("Predicted ranges", analysis.predicted_ranges))

    console.print(_ranges_table(f"Historical ranges ({analysis.length} ticks)", analysis.historical_ranges))


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None, help="YAML config file")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str]):
    """Boom Oracle pattern engine CLI"""
    ctx.ensure_object(dict)
    ctx.obj["config"] = _load(config_path)


@cli.command()
@click.argument("values", nargs=-1)
@click.option("--file", "file", type=click.Path(exists=True, dir_okay=False), help="File of ticks (whitespace or comma separated)")
@click.option("--pattern-length", "-l", type=int, default=None, help="Pattern length")
@click.option("--confidence", "-c", type=float, default=None, help="Minimum confidence, 0-100")
@click.option("--seed/--no-seed", "use_seed", default=False, help="Analyze the default seed sequence when no values are given")
@click.pass_context
def analyze(
    ctx: click.Context,
    values: tuple[str, ...],
    file: Optional[str],
    pattern_length: Optional[int],
    confidence: Optional[float],
    use_seed: bool,
):
    """Predict the next tick of a sequence."""
    config: Config = ctx.obj["config"]
    try:
        ticks = _read_values(values, file)
    except InvalidTickError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)
    if not ticks and use_seed:
        ticks = list(DEFAULT_SEED_TICKS)

    store = MemoryStore()
    for tick in ticks:
        store.add_tick(config.server.user_id, tick)
    config.storage.use_seed_when_empty = False

    session = TickSession(config, store, user_id=config.server.user_id)
    session.load()
    try:
        if pattern_length is not None:
            session.set_pattern_length(pattern_length)
        if confidence is not None:
            session.set_confidence_threshold(confidence)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    _print_analysis(session.analyze())


@cli.command()
@click.option("--host", default=None, help="Bind address")
@click.option("--port", type=int, default=None, help="Port")
@click.pass_context
def serve(ctx: click.Context, host: Optional[str], port: Optional[int]):
    """Run the HTTP/WebSocket service."""
    import uvicorn

    from boom_oracle.services.server.main import create_app

    config: Config = ctx.obj["config"]
    app = create_app(config)
    console.print(Panel(
        f"Boom Oracle API: http://{host or config.server.host}:{port or config.server.port}",
        style="bold cyan",
    ))
    uvicorn.run(app, host=host or config.server.host, port=port or config.server.port)


@cli.command()
@click.option("--count", "-n", type=int, default=10, help="Number of ticks")
@click.option("--interval", type=float, default=None, help="Seconds between ticks")
@click.pass_context
def simulate(ctx: click.Context, count: int, interval: Optional[float]):
    """Print ticks from the simulated feed."""
    config: Config = ctx.obj["config"]
    feed = config.feed
    if interval is not None:
        feed = feed.model_copy(update={"interval_seconds": interval})
    simulator = TickSimulator(feed)

    async def run():
        async for value in simulator.stream(limit=count):
            console.print(value)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")


@cli.command()
@click.option("--limit", type=int, default=20, help="Rows to show")
@click.pass_context
def history(ctx: click.Context, limit: int):
    """Show stored prediction outcomes."""
    config: Config = ctx.obj["config"]
    setup_logging(level="WARNING", structured=False)
    outcomes = _repository(config).list_history(config.server.user_id)
    metrics = summarize(outcomes)

    table = Table(title="Prediction history")
    table.add_column("Time")
    table.add_column("Pattern")
    table.add_column("Predicted", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Range")
    table.add_column("Result", justify="center")
    for outcome in outcomes[:limit]:
        table.add_row(
            outcome.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            outcome.pattern,
            str(outcome.predicted_value),
            str(outcome.actual_value),
            f"{outcome.confidence}%",
            outcome.predicted_range,
            "[green]hit[/green]" if outcome.is_correct else "[red]miss[/red]",
        )
    console.print(table)
    console.print(
        f"Total: {metrics.total}  Correct: {metrics.correct}  "
        f"Success: {metrics.success_rate:.1f}%  Fail: {metrics.fail_rate:.1f}%"
    )


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reset(ctx: click.Context, yes: bool):
    """Delete all stored ticks and prediction history."""
    if not yes:
        click.confirm("Delete ALL tick data and prediction history?", abort=True)
    config: Config = ctx.obj["config"]
    repo = _repository(config)
    ticks = repo.delete_ticks(config.server.user_id)
    outcomes = repo.delete_history(config.server.user_id)
    console.print(f"[green]Reset complete: {ticks} tick(s), {outcomes} outcome(s) deleted[/green]")


if __name__ == "__main__":
    cli()

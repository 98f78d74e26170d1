"""
Command-line host for the ordering engine.

Reads an ordering request from a JSON file, runs it in a worker process with
a progress bar, and prints the ordered keys as JSON. Ctrl-C cancels the
running request.
"""

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List

import click
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import ConfigManager, OrderingConfig, VALID_STRATEGIES
from .core.types import OrderFailure, OrderRequest, ProgressEvent
from .engine.errors import OrderingError, error_from_kind, is_cancelled
from .engine.shell import order_items
from .engine.worker import OrderingWorker
from .utils.logging_setup import get_logger, setup_logging

console = Console(stderr=True)
logger = get_logger(__name__)


def _load_request(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    if not isinstance(payload, dict):
        raise click.BadParameter("request file must hold a JSON object", param_hint="REQUEST_FILE")
    # accept either the bare request or a full start_sort message
    if payload.get("type") == "start_sort":
        payload = payload.get("data") or {}
    return payload


def _collect(messages: Iterator[Dict[str, Any]], on_progress: Callable[[ProgressEvent], None]) -> List[Any]:
    for message in messages:
        kind = message.get("type")
        if kind == "progress":
            on_progress(ProgressEvent(message["message"], message["current"], message["total"]))
        elif kind == "complete":
            return list(message["orderedKeys"])
        elif kind == "error":
            raise error_from_kind(message["errorKind"], message["message"])
    raise OrderingError("Ordering worker stopped without a result")


def _run_in_worker(request: OrderRequest, config: OrderingConfig,
                   on_progress: Callable[[ProgressEvent], None]) -> List[Any]:
    with OrderingWorker(config) as worker:
        worker.submit(request)
        try:
            return _collect(worker.events(), on_progress)
        except KeyboardInterrupt:
            console.print("[yellow]Cancelling...[/yellow]")
            worker.abort()
            return _collect(worker.events(timeout=30.0), on_progress)


def _run_in_process(request: OrderRequest, config: OrderingConfig,
                    on_progress: Callable[[ProgressEvent], None]) -> List[Any]:
    response = order_items(request, progress=on_progress, config=config)
    if isinstance(response, OrderFailure):
        raise error_from_kind(response.error_kind, response.message)
    return list(response.ordered_keys)


@click.group(name="simorder")
@click.version_option(__version__, prog_name="simorder")
def main():
    """Order perceptually hashed media so similar items sit together."""
    pass


@main.command(name="order")
@click.argument("request_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--strategy",
    type=click.Choice(VALID_STRATEGIES),
    help="Ordering strategy (overrides the request and the config)"
)
@click.option("--max-comparisons", type=click.IntRange(min=1), help="Simple strategy sample cap")
@click.option("--focus-index", type=int, help="Index of the item to start from")
@click.option("--seed", type=int, help="Seed for the simple strategy's sampling")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="Path to config file")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write ordered keys here instead of stdout")
@click.option("--no-worker", is_flag=True, help="Run in this process instead of a worker process")
@click.option("--log-file", "log_dir", type=click.Path(file_okay=False), help="Also write JSON-lines logs into this directory")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def order_command(request_file, strategy, max_comparisons, focus_index, seed,
                  config_path, output, no_worker, log_dir, verbose):
    """Order the items described by REQUEST_FILE (JSON)."""
    manager = ConfigManager(config_path)
    try:
        config = manager.config
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        raise SystemExit(2)
    setup_logging(
        level="DEBUG" if verbose else config.log_level,
        log_dir=Path(log_dir) if log_dir else None,
        file=bool(log_dir),
    )

    data = _load_request(Path(request_file))
    logger.debug(f"Loaded request with {len(data.get('items') or [])} items from {request_file}")
    data.setdefault("strategy", config.strategy)
    if strategy:
        data["strategy"] = strategy
    if max_comparisons is not None:
        data["maxComparisons"] = max_comparisons
    elif "maxComparisons" not in data and config.max_comparisons is not None:
        data["maxComparisons"] = config.max_comparisons
    if focus_index is not None:
        data["focusIndex"] = focus_index
    if seed is not None:
        data["seed"] = seed

    runner = _run_in_process if no_worker else _run_in_worker

    try:
        request = OrderRequest.from_message(data)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Starting...", total=len(request.items) or None)

            def on_progress(event: ProgressEvent) -> None:
                progress.update(task, description=event.message, completed=event.current,
                                total=event.total or None)

            ordered = runner(request, config, on_progress)
    except OrderingError as e:
        colour = "yellow" if is_cancelled(e) else "red"
        console.print(f"[{colour}]✗ {e.kind}: {e.message}[/{colour}]")
        raise SystemExit(1)
    except TimeoutError as e:
        console.print(f"[red]✗ Ordering worker stopped responding: {e}[/red]")
        raise SystemExit(1)

    text = json.dumps(ordered, indent=2)
    if output:
        Path(output).write_text(text + "\n", encoding="utf-8")
        console.print(f"[green]✓ Wrote {len(ordered)} keys to {output}[/green]")
    else:
        click.echo(text)


@main.group(name="config")
def config_group():
    """Manage ordering configuration."""
    pass


@config_group.command(name="init")
@click.option(
    "--path",
    type=click.Path(dir_okay=False),
    default=".simorder.yml",
    help="Path for config file"
)
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path, force):
    """Write a default configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        if not click.confirm(f"Config file {path} already exists. Overwrite?"):
            console.print("[yellow]Aborted[/yellow]")
            return

    OrderingConfig().save_to_file(config_path)
    console.print(f"[green]✓ Created config file at {path}[/green]")


@config_group.command(name="show")
@click.option(
    "--path",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to config file"
)
def config_show(path):
    """Display the effective configuration."""
    manager = ConfigManager(path)
    config = manager.config

    table = Table(title="simorder configuration")
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="green")
    for key, value in config.to_dict().items():
        table.add_row(key, "unlimited" if value is None else str(value))
    Console().print(table)

    for issue in manager.validate_config(config):
        console.print(f"[yellow]{issue}[/yellow]")


if __name__ == "__main__":
    sys.exit(main())

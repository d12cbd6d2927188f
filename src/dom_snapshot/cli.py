"""CLI entry point for DOM Snapshot."""

import asyncio
import logging
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .analyzer import HTMLParser, find_external_resources
from .capture import capture_with_stats
from .config import Config, load_config
from .environment import StaticEnvironment
from .errors import SnapshotError
from .models import CaptureResult, Document
from .network import HttpxFetcher, is_file_url

console = Console()


@click.group()
@click.version_option(package_name="dom-snapshot")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Config file path")
@click.option("--verbose", "-v", count=True, help="Increase log output (-v info, -vv debug)")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: int) -> None:
    """DOM Snapshot - freeze a page into a single self-contained HTML file."""
    ctx.ensure_object(dict)

    level = {0: logging.WARNING, 1: logging.INFO}.get(verbose, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )

    ctx.obj["config"] = load_config(Path(config_path) if config_path else None)


@main.command()
@click.argument("source")
@click.option("--output", "-o", "output_path", type=click.Path(dir_okay=False), help="Where to write the snapshot")
@click.option("--base-url", help="URL that relative references resolve against")
@click.option("--scroll-state", type=click.Path(exists=True, dir_okay=False), help="YAML/JSON file of scroll offsets")
@click.option("--window-scroll", help="Viewport scroll offset as X,Y")
@click.option("--dark/--light", "prefers_dark", default=None, help="Override the colour-scheme preference")
@click.option("--width", type=int, help="Viewport width in CSS pixels")
@click.option("--height", type=int, help="Viewport height in CSS pixels")
@click.pass_context
def capture(
    ctx: click.Context,
    source: str,
    output_path: str | None,
    base_url: str | None,
    scroll_state: str | None,
    window_scroll: str | None,
    prefers_dark: bool | None,
    width: int | None,
    height: int | None,
) -> None:
    """Capture SOURCE (a file path or http(s) URL) as a static snapshot."""
    config: Config = ctx.obj["config"]

    env_config = config.environment
    overrides = {
        "prefers_dark": prefers_dark,
        "viewport_width": width,
        "viewport_height": height,
    }
    env_config = env_config.model_copy(update={k: v for k, v in overrides.items() if v is not None})

    try:
        elements, window = _load_scroll_state(Path(scroll_state)) if scroll_state else ({}, None)
        if window_scroll:
            window = _parse_pair(window_scroll)

        with console.status("[yellow]Capturing snapshot...[/]"):
            result = asyncio.run(
                _run_capture(config, source, base_url, elements, window, StaticEnvironment(env_config))
            )
    except SnapshotError as e:
        console.print(f"[bold red]✗ {e}[/]")
        raise SystemExit(1)

    destination = Path(output_path) if output_path else config.output_path
    destination.write_text(result.html, encoding="utf-8")

    _show_summary(result, destination)


@main.command()
@click.argument("source")
@click.option("--base-url", help="URL that relative references resolve against")
@click.option("--scroll-state", type=click.Path(exists=True, dir_okay=False), help="YAML/JSON file of scroll offsets")
@click.pass_context
def inspect(ctx: click.Context, source: str, base_url: str | None, scroll_state: str | None) -> None:
    """List the resources and scroll state a capture of SOURCE would use."""
    config: Config = ctx.obj["config"]

    try:
        elements, window = _load_scroll_state(Path(scroll_state)) if scroll_state else ({}, None)
        document = asyncio.run(_load_document(config, source, base_url, elements, window))
    except SnapshotError as e:
        console.print(f"[bold red]✗ {e}[/]")
        raise SystemExit(1)

    table = Table(title="External Resources")
    table.add_column("Kind", style="cyan")
    table.add_column("URL", style="dim", overflow="fold")
    resources = list(find_external_resources(document))
    for resource in resources:
        table.add_row(resource.kind, resource.url)
    console.print(table)

    scrolled = [e for e in document.root.iter_elements() if e is not document.root and not e.scroll.is_zero]
    console.print(f"\n[bold]Window scroll:[/] {document.window_scroll.x}, {document.window_scroll.y}")
    console.print(f"[bold]Scrolled elements:[/] {len(scrolled)}")
    for element in scrolled:
        console.print(f"  • <{element.tag}> {element.scroll.x}, {element.scroll.y}")
    console.print()


async def _run_capture(
    config: Config,
    source: str,
    base_url: str | None,
    elements: dict,
    window: tuple[float, float] | None,
    environment: StaticEnvironment,
) -> CaptureResult:
    async with HttpxFetcher(config.fetch) as fetcher:
        document = await _load_document(config, source, base_url, elements, window, fetcher)
        # Pages loaded from disk may reference files next to them; remote pages may not
        fetcher.allow_files = is_file_url(document.base_url)
        return await capture_with_stats(document, fetcher, environment, config.theme)


async def _load_document(
    config: Config,
    source: str,
    base_url: str | None,
    elements: dict,
    window: tuple[float, float] | None,
    fetcher: HttpxFetcher | None = None,
) -> Document:
    """Read SOURCE and build the capture input tree."""
    if source.startswith(("http://", "https://")):
        fetcher = fetcher or HttpxFetcher(config.fetch)
        html = await fetcher.fetch_text(source)
        base_url = base_url or source
    else:
        path = Path(source)
        if not path.is_file():
            raise SnapshotError(f"No such file: {source}")
        html = path.read_text(encoding="utf-8", errors="replace")
        base_url = base_url or path.resolve().as_uri()

    return HTMLParser(html).to_document(
        scroll_offsets=elements,
        window_scroll=window,
        base_url=base_url,
    )


def _load_scroll_state(path: Path) -> tuple[dict, tuple[float, float] | None]:
    """
    Read scroll offsets from YAML or JSON.

    Expected shape::

        window: [0, 120]
        elements:
          "#sidebar": [0, 300]
    """
    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise SnapshotError(f"Scroll state must be a mapping: {path}")

    window = raw.get("window")
    elements = raw.get("elements") or {}
    if not isinstance(elements, dict):
        raise SnapshotError(f"Scroll state 'elements' must map selectors to [x, y]: {path}")

    try:
        return (
            {selector: _pair(offsets) for selector, offsets in elements.items()},
            _pair(window) if window is not None else None,
        )
    except (TypeError, ValueError) as e:
        raise SnapshotError(f"Invalid scroll state in {path}: {e}") from e


def _pair(value) -> tuple[float, float]:
    x, y = value
    return float(x), float(y)


def _parse_pair(text: str) -> tuple[float, float]:
    try:
        return _pair(text.split(","))
    except ValueError:
        raise SnapshotError(f"Expected X,Y but got: {text}")


def _show_summary(result: CaptureResult, destination: Path) -> None:
    """Print what went into the snapshot."""
    stats = result.stats

    table = Table(title="Snapshot Summary")
    table.add_column("Item", style="cyan")
    table.add_column("Count", style="magenta", justify="right")
    table.add_row("Stylesheets inlined", str(stats.stylesheets_inlined))
    table.add_row("Stylesheets dropped", str(stats.stylesheets_failed))
    table.add_row("Images inlined", str(stats.images_inlined))
    table.add_row("Images left as links", str(stats.images_failed))
    table.add_row("Media queries frozen", str(stats.media_queries_frozen))
    table.add_row("Scroll positions", str(result.scroll_entries))

    console.print(table)
    console.print(f"\n[green]✓ Wrote {len(result.html):,} characters to {destination}[/]\n")


if __name__ == "__main__":
    main()

"""CLI entry point — the `tprobe` command."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
import httpx
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
from rich.table import Table

from track_probe.core.base import CheckStatus, LayerName, LayerStatus
from track_probe.core.config import Settings, load_settings
from track_probe.core.log import setup_logging
from track_probe.core.orchestrator import collect
from track_probe.core.registry import get_all_layers
from track_probe.core.report import ScanReport, load_report, load_snapshot, save_report
from track_probe.core.scoring import (
    DriftReport,
    TrustScore,
    compare,
    get_grade_color,
    get_grade_label,
    score,
)
from track_probe.core.signals import FingerprintData, GeoHint
from track_probe.core.weights import (
    UnknownPresetError,
    WeightRegistry,
    fetch_presets,
    load_preset_file,
)

console = Console()

STATUS_STYLES = {
    LayerStatus.PASS: "green",
    LayerStatus.WARN: "yellow",
    LayerStatus.FAIL: "red",
    LayerStatus.UNAVAILABLE: "dim",
}

# Errors that mean the user's configuration or input is wrong.
USER_ERRORS = (ValidationError, UnknownPresetError, httpx.HTTPError, OSError, ValueError)


def _run_async(coro: Any) -> Any:
    """Run an async coroutine from sync Click commands."""
    return asyncio.run(coro)


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


async def _build_registry(settings: Settings) -> WeightRegistry:
    """Built-in presets plus any custom ones named in the settings."""
    registry = WeightRegistry.load()
    if settings.presets_file is not None:
        registry = registry.with_presets(load_preset_file(settings.presets_file))
    if settings.presets_url:
        registry = registry.with_presets(await fetch_presets(settings.presets_url))
    return registry


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    sys.exit(1)


def _saved_preset(path: Path, registry: WeightRegistry) -> str | None:
    """Preset a saved report was scored with, if the registry still knows it."""
    try:
        saved = load_report(path).preset
    except ValueError:
        return None
    return saved if saved in registry else None


def _render_trust_score(result: TrustScore, preset_id: str) -> None:
    """Render a TrustScore with Rich."""
    color = get_grade_color(result.overall)
    label = get_grade_label(result.overall)

    console.print(
        Panel(
            f"[{color} bold]{result.overall}/100  Grade {result.grade}[/{color} bold]\n"
            f"[{color}]{label}[/{color}]",
            title="[bold]Trust Score[/bold]",
            subtitle=f"preset: {preset_id}",
            style="blue",
        )
    )

    layers = get_all_layers()
    table = Table(title="Layer Breakdown")
    table.add_column("Layer", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Status")

    for name, layer_result in result.layers.items():
        style = STATUS_STYLES[layer_result.status]
        shown = "-" if layer_result.score is None else f"{layer_result.score}/100"
        table.add_row(
            layers[name].display_name,
            f"[{style}]{shown}[/{style}]",
            f"{layer_result.weight:.0%}",
            f"[{style}]{layer_result.status.value}[/{style}]",
        )
    console.print(table)

    for issue in (*result.critical_issues, *result.warnings):
        style = "red" if issue.status == CheckStatus.FAIL else "yellow"
        console.print(f"  [{style}][{issue.status.value.upper()}][/{style}] {issue.layer}: {escape(issue.message)}")

    if result.recommendations:
        console.print("\n[bold]Recommendations[/bold]")
        for recommendation in result.recommendations:
            console.print(f"  • {escape(recommendation)}")

    if result.drift is not None:
        _render_drift(result.drift)


def _render_drift(drift: DriftReport) -> None:
    table = Table(title="Fingerprint Drift")
    table.add_column("Layer", style="bold")
    table.add_column("Changed")

    for name, layer_drift in drift.layers.items():
        if layer_drift.changed is None:
            shown = "[dim]n/a[/dim]"
        elif layer_drift.changed:
            shown = "[yellow]yes[/yellow]"
        else:
            shown = "[green]no[/green]"
        table.add_row(name.value, shown)

    console.print(table)
    sign = "+" if drift.score_delta >= 0 else ""
    console.print(f"[bold]Score delta:[/bold] {sign}{drift.score_delta}")


async def _scan(
    settings: Settings,
    url: str,
    headless: bool,
    timeout: float | None,
    show_progress: bool,
) -> FingerprintData:
    from track_probe.core.browser import open_page

    async with open_page(headless=headless, url=url) as page:
        if not show_progress:
            return await collect(page, timeout=timeout, settings=settings)

        with Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Collecting", total=1.0)

            def on_progress(layer: LayerName, fraction: float) -> None:
                progress.update(task, completed=fraction, description=f"Collected {layer}")

            return await collect(page, on_progress=on_progress, timeout=timeout, settings=settings)


@click.group()
@click.version_option(package_name="track-probe")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to a TOML config file.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """tprobe — see what a tracking script learns about your browser."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = load_settings(config_path)
    except USER_ERRORS as e:
        _fail(f"Invalid configuration: {e}")


@cli.command()
@click.option("--preset", "-p", help="Weight preset id (see `tprobe presets`).")
@click.option("--url", default="about:blank", show_default=True, help="Page to probe from.")
@click.option("--headed", is_flag=True, help="Show the browser window.")
@click.option("--timeout", type=float, help="Collection budget in seconds.")
@click.option("--geo", is_flag=True, help="Look up IP geolocation for the timezone cross-check.")
@click.option(
    "--previous",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Earlier report to compare against.",
)
@click.option("--save", type=click.Path(dir_okay=False, path_type=Path), help="Write the report as JSON.")
@click.option("--format", "output_format", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def scan(
    ctx: click.Context,
    preset: str | None,
    url: str,
    headed: bool,
    timeout: float | None,
    geo: bool,
    previous: Path | None,
    save: Path | None,
    output_format: str,
) -> None:
    """Launch Chromium, collect every layer and score the result."""
    settings = _settings(ctx)

    async def _run() -> tuple[ScanReport, str]:
        registry = await _build_registry(settings)
        preset_id = preset or settings.preset or registry.default.id
        weights = registry.resolve(preset_id)
        prior, prior_hint = load_snapshot(previous) if previous else (None, None)

        geo_hint: GeoHint | None = None
        if geo:
            from track_probe.geo import lookup_geo_hint

            geo_hint = await lookup_geo_hint()

        data = await _scan(
            settings,
            url=url,
            headless=settings.headless and not headed,
            timeout=timeout,
            show_progress=output_format == "rich",
        )
        result = score(data, weights, prior, geo_hint=geo_hint, previous_geo_hint=prior_hint)
        report = ScanReport(fingerprint=data, trust_score=result, preset=preset_id, geo_hint=geo_hint)
        return report, preset_id

    try:
        report, preset_id = _run_async(_run())
    except USER_ERRORS as e:
        _fail(str(e))
        return

    if save:
        save_report(report, save)

    if output_format == "json":
        click.echo(report.model_dump_json(indent=2))
    else:
        _render_trust_score(report.trust_score, preset_id)
        if save:
            console.print(f"[green]Report saved to {save}[/green]")


@cli.command("score")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--preset", "-p", help="Weight preset id (see `tprobe presets`).")
@click.option(
    "--previous",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Earlier report to compare against.",
)
@click.option("--format", "output_format", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def score_cmd(
    ctx: click.Context,
    path: Path,
    preset: str | None,
    previous: Path | None,
    output_format: str,
) -> None:
    """Re-score a saved report or fingerprint snapshot."""
    settings = _settings(ctx)

    try:
        registry = _run_async(_build_registry(settings))
        preset_id = preset or settings.preset or registry.default.id
        data, geo_hint = load_snapshot(path)
        prior, prior_hint = load_snapshot(previous) if previous else (None, None)
        result = score(
            data,
            registry.resolve(preset_id),
            prior,
            geo_hint=geo_hint,
            previous_geo_hint=prior_hint,
        )
    except USER_ERRORS as e:
        _fail(str(e))
        return

    if output_format == "json":
        click.echo(result.model_dump_json(indent=2))
    else:
        _render_trust_score(result, preset_id)


@cli.command()
@click.option("--format", "output_format", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def presets(ctx: click.Context, output_format: str) -> None:
    """List the available weight presets."""
    try:
        registry = _run_async(_build_registry(_settings(ctx)))
    except USER_ERRORS as e:
        _fail(str(e))
        return

    if output_format == "json":
        data = [p.model_dump(mode="json") for p in registry]
        click.echo(json.dumps(data, indent=2))
        return

    # One weight per line keeps the table narrow; ids must never be truncated.
    table = Table(title="Weight Presets", show_lines=True)
    table.add_column("Id", style="bold", no_wrap=True)
    table.add_column("Name")
    table.add_column("Weights")

    for preset in registry:
        marker = " *" if preset.id == registry.default.id else ""
        weights = preset.weights.as_dict()
        shown = "\n".join(f"{name.value:<10} {weights[name]:.2f}" for name in LayerName)
        table.add_row(preset.id + marker, preset.name, shown)

    console.print(table)
    console.print("[dim]* default preset[/dim]")


@cli.command()
@click.argument("previous", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("current", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--preset", "-p", help="Weight preset id used for the score delta.")
@click.option("--format", "output_format", type=click.Choice(["rich", "json"]), default="rich")
@click.pass_context
def diff(
    ctx: click.Context,
    previous: Path,
    current: Path,
    preset: str | None,
    output_format: str,
) -> None:
    """Show which layer fingerprints changed between two saved scans."""
    settings = _settings(ctx)

    try:
        registry = _run_async(_build_registry(settings))
        if preset is None and settings.preset is None:
            preset = _saved_preset(current, registry)
        weights = registry.resolve(preset or settings.preset)
        current_data, current_hint = load_snapshot(current)
        previous_data, previous_hint = load_snapshot(previous)
        drift = compare(
            current_data,
            previous_data,
            weights,
            geo_hint=current_hint,
            previous_geo_hint=previous_hint,
        )
    except USER_ERRORS as e:
        _fail(str(e))
        return

    if output_format == "json":
        click.echo(drift.model_dump_json(indent=2))
    else:
        _render_drift(drift)

# Copyright (c) 2025-2026 provide.io llc
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from pathlib import Path

import click

from fluxhost.addons.manager import AddonManager
from fluxhost.addons.manifest import resolve_manifest
from fluxhost.errors import AddonNotFoundError
from fluxhost.logging import OutputLine, configure_logging
from fluxhost.scripting.values import HostValue
from fluxhost.settings import Settings


def parse_event(text: str) -> tuple[str, list[HostValue]]:
    """Split `NAME` or `NAME:arg1,arg2` into the event name and typed arguments."""
    name, _, raw_args = text.partition(":")
    if not name:
        raise click.BadParameter(f"missing event name in {text!r}", param_hint="--event")
    args: list[HostValue] = []
    for raw in raw_args.split(",") if raw_args else []:
        args.append(_coerce(raw))
    return name, args


def _coerce(raw: str) -> HostValue:
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    if lowered == "nil":
        return None
    for kind in (int, float):
        try:
            return kind(raw)
        except ValueError:
            continue
    return raw


def _echo_line(line: OutputLine) -> None:
    click.echo(str(line), err=line.level == "error")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
def cli() -> None:
    """fluxhost command line interface."""


@cli.command("run")
@click.argument("folders", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--event", "events", multiple=True, help="Event to dispatch after loading, as NAME or NAME:arg,arg.")
@click.option("--ticks", type=int, default=0, show_default=True, help="OnUpdate passes to run after events.")
@click.option("--tick-interval", type=float, default=0.1, show_default=True, help="Elapsed seconds per pass.")
@click.option("--strict/--no-strict", default=False, show_default=True, help="Exit non-zero on any addon error.")
def run(folders: tuple[Path, ...], events: tuple[str, ...], ticks: int, tick_interval: float, strict: bool) -> None:
    """Load addon folders, dispatch events and flush saved variables.

    Examples:
        fluxhost run addons/Foo
        fluxhost run addons/Foo addons/Bar --event PLAYER_LOGIN --event BAG_UPDATE:4
    """
    parsed = [parse_event(text) for text in events]
    settings = Settings()
    configure_logging(settings)

    manager = AddonManager(settings=settings)
    manager.output.subscribe(_echo_line)
    failures = 0
    try:
        for folder in folders:
            addon = manager.load_addon(folder)
            if addon is None or not addon.report.ok:
                failures += 1
        for name, args in parsed:
            report = manager.trigger_event(name, *args)
            failures += len(report.errors)
        for _ in range(ticks):
            manager.update_frames(tick_interval)
    finally:
        manager.shutdown()

    click.echo(f"{len(manager.loaded_addons)} addon(s) loaded, {len(manager.frames.frames())} frame(s)")
    if strict and failures:
        raise click.ClickException(f"{failures} error(s) while running addons")


@cli.command("inspect")
@click.argument("folder", type=click.Path(path_type=Path))
def inspect_addon(folder: Path) -> None:
    """Show which files an addon would execute, without running them."""
    settings = Settings()
    try:
        resolution = resolve_manifest(
            folder,
            script_suffix=settings.script_suffix,
            manifest_suffix=settings.manifest_suffix,
        )
    except AddonNotFoundError as e:
        raise click.ClickException(str(e)) from e

    root = folder.resolve()
    click.echo(f"manifest: {resolution.manifest.name if resolution.manifest else '(none, path order)'}")
    for key, value in resolution.metadata.items():
        click.echo(f"{key}: {value}")
    for path in resolution.files:
        click.echo(f"  {path.relative_to(root).as_posix()}")
    for warning in resolution.warnings:
        click.echo(f"warning: {warning}", err=True)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

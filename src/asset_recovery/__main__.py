"""CLI entry point for Asset Recovery."""

from __future__ import annotations

import json
import logging
import sys

import click
import yaml

from . import __version__
from .exceptions import ConfigError
from .friendly_errors import (
    format_friendly_error,
    friendly_config_error,
    friendly_recovery_error,
)


# ── Helpers ──────────────────────────────────────────────


def _load_or_exit(config_path: str | None):
    from .config import load_config

    try:
        return load_config(config_path)
    except ConfigError as e:
        click.echo(format_friendly_error(friendly_config_error(e)), err=True)
        raise SystemExit(2)


def _configure_logging(level: str, verbose: bool) -> None:
    if not verbose:
        level_value = getattr(logging, level.upper(), logging.WARNING)
    else:
        level_value = logging.DEBUG
    logging.basicConfig(
        level=level_value,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ── CLI Commands ─────────────────────────────────────────


@click.group()
@click.version_option(version=__version__, prog_name="asset-recovery")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging to stderr")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Asset Recovery: rescue asset lists from broken LLM JSON."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("source", type=click.File("r"), default="-")
@click.option("--config", "config_path", default=None, help="Config file path")
@click.option(
    "--brief",
    "brief_file",
    type=click.File("r"),
    default=None,
    help="Project brief; used for keyword fallback assets when recovery fails",
)
@click.option("--pretty", is_flag=True, help="Indent the JSON output")
@click.pass_context
def recover(
    ctx: click.Context, source, config_path: str | None, brief_file, pretty: bool
) -> None:
    """Recover asset records from a completion (FILE or stdin).

    Exits 1 when nothing could be recovered and no --brief was given.
    """
    from .recovery import RecoveryFailure, recover as run_recovery

    config = _load_or_exit(config_path)
    _configure_logging(config.log_level, ctx.obj.get("verbose", False))

    outcome = run_recovery(source.read(), config.recovery)
    indent = 2 if pretty else None

    if isinstance(outcome, RecoveryFailure) or not outcome.records:
        if brief_file is not None:
            from .keyword_fallback import fallback_records

            records = fallback_records(brief_file.read())
            payload = {
                "source": "keyword_fallback",
                "records": [r.model_dump(mode="json") for r in records],
            }
            if isinstance(outcome, RecoveryFailure):
                payload["failure"] = outcome.cause.value
            click.echo(json.dumps(payload, indent=indent))
            return

    if isinstance(outcome, RecoveryFailure):
        click.echo(format_friendly_error(friendly_recovery_error(outcome)), err=True)
        click.echo(
            json.dumps(
                {"source": "failure", **outcome.model_dump(mode="json")}, indent=indent
            )
        )
        ctx.exit(1)

    payload = {"source": "recovery", **outcome.model_dump(mode="json")}
    click.echo(json.dumps(payload, indent=indent))


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--config", "config_path", default=None, help="Config file path")
@click.pass_context
def batch(ctx: click.Context, files: tuple[str, ...], config_path: str | None) -> None:
    """Recover several completion files and print aggregate stats."""
    from pathlib import Path

    from .recovery import RecoveryFailure, recover as run_recovery
    from .stats import RecoveryStats

    config = _load_or_exit(config_path)
    _configure_logging(config.log_level, ctx.obj.get("verbose", False))

    stats = RecoveryStats()
    for name in files:
        outcome = run_recovery(Path(name).read_text(), config.recovery)
        stats.record(outcome)
        if isinstance(outcome, RecoveryFailure):
            click.echo(f"{name}: FAILED ({outcome.cause.value})")
        else:
            saved = outcome.telemetry.objects_saved
            note = f", {saved} merged record(s) split" if saved else ""
            if outcome.telemetry.fallback_used:
                note += ", via fallback"
            click.echo(f"{name}: {len(outcome.records)} record(s){note}")

    click.echo(json.dumps(stats.summary(), indent=2))


@main.command("config")
@click.option("--config", "config_path", default=None, help="Config file path")
def show_config(config_path: str | None) -> None:
    """Print the effective configuration as YAML."""
    config = _load_or_exit(config_path)
    click.echo(
        yaml.dump(config.model_dump(), default_flow_style=False, sort_keys=False)
    )


if __name__ == "__main__":
    main()

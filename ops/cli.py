#!/usr/bin/env python3
"""
Tract Choropleth Command Line Interface

Classifies a tract dataset and renders it, with configuration overrides on
the command line so config.yaml never needs editing for one-off runs.

Usage:
    tract-map classify                                # Log breaks and legend
    tract-map classify --output annotated.geojson     # Also write annotated GeoJSON
    tract-map inspect 4023.02                         # Print one tract's info card
    tract-map build-map                               # Write the interactive HTML map

    # Overrides:
    tract-map --policy quantile build-map
    tract-map --breaks 5,15,25,35 classify
    tract-map --input data/other_tracts.geojson classify

    # Logging:
    tract-map --verbose classify                      # DEBUG level
    tract-map --trace classify                        # TRACE level
    tract-map --log-file run.log build-map            # Also log to a file
"""

import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from loguru import logger

from choropleth.errors import SetupConfigurationError
from choropleth.features import load_tract_features
from choropleth.pipeline import TractChoropleth, build_choropleth
from ops.config_loader import Config


class ConfigContext:
    """Click context object holding config overrides until a command needs them."""

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = config_file
        self.overrides: Dict[str, Any] = {}
        self.input_override: Optional[Path] = None

    def add_override(self, key: str, value: Any) -> None:
        """Add config override using dot notation."""
        keys = key.split(".")
        current = self.overrides
        for k in keys[:-1]:
            current = current.setdefault(k, {})
        current[keys[-1]] = value
        logger.debug(f"Config override: {key} = {value}")

    def load_config(self) -> Config:
        config = Config(self.config_file)
        for section, values in self.overrides.items():
            merged = dict(config.data.get(section, {}) or {})
            merged.update(values)
            config.data[section] = merged
        return config

    def load_choropleth(self, config: Optional[Config] = None) -> TractChoropleth:
        config = config or self.load_config()
        config.print_config_summary()

        settings = config.get_classification_settings()
        input_path = self.input_override or config.get_input_path("tracts_geojson")
        features = load_tract_features(input_path)
        return build_choropleth(features, settings)


def parse_breaks(
    ctx: click.Context, param: click.Parameter, value: Optional[str]
) -> Optional[List[float]]:
    if value is None:
        return None
    try:
        return [float(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter(f"expected comma-separated numbers, got '{value}'") from None


CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)
DETAILED_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}"

ERROR_HINTS = (
    (SetupConfigurationError, "Check the classification and columns sections of config.yaml"),
    (FileNotFoundError, "Check input_files.tracts_geojson in config.yaml, or pass --input"),
)


def setup_logging(verbose: bool = False, enable_trace: bool = False) -> None:
    """
    Replace loguru's default sink with a stderr sink for this run.

    Args:
        verbose: Log at DEBUG with module/line locations
        enable_trace: Log at TRACE, with loguru backtraces and variable dumps
    """
    if enable_trace:
        log_level = "TRACE"
    elif verbose:
        log_level = "DEBUG"
    else:
        log_level = "INFO"

    logger.remove()
    logger.add(
        sys.stderr,
        format=DETAILED_FORMAT if log_level != "INFO" else CONSOLE_FORMAT,
        level=log_level,
        colorize=True,
        backtrace=enable_trace,
        diagnose=enable_trace,
    )
    os.environ["LOGURU_LEVEL"] = log_level

    logger.debug(f"🔧 Logging at {log_level} level")


def handle_critical_error(error: Exception, context: str = "") -> None:
    """
    Report why a tract-map command stopped.

    Args:
        error: The exception that ended the command
        context: What the command was doing, e.g. "Inspecting tract 0101.00"
    """
    enable_trace = os.environ.get("LOGURU_LEVEL", "INFO") == "TRACE"
    if enable_trace:
        logger.opt(exception=error).trace(f"Traceback while {context.lower() or 'running'}:")

    logger.critical(f"💥 {context or 'Command'} failed: {type(error).__name__}: {error}")
    for error_type, hint in ERROR_HINTS:
        if isinstance(error, error_type):
            logger.info(f"💡 {hint}")
            break
    if not enable_trace:
        logger.info("💡 Run with --trace for the full traceback")


def _run(ctx: click.Context, context: str, action) -> None:
    """Run a command body, turning setup and load failures into exit code 1."""
    try:
        action(ctx.obj)
    except (SetupConfigurationError, FileNotFoundError, ValueError, OSError) as e:
        handle_critical_error(e, context)
        ctx.exit(1)


@click.group()
@click.option(
    "--config", "-c", "config_file", type=click.Path(dir_okay=False), help="Path to config.yaml"
)
@click.option(
    "--input",
    "-i",
    "input_file",
    type=click.Path(dir_okay=False),
    help="Tract dataset to use instead of input_files.tracts_geojson",
)
@click.option(
    "--policy", type=click.Choice(["fixed", "quantile"]), help="Override classification.policy"
)
@click.option(
    "--breaks", callback=parse_breaks, help="Override classification.fixed_breaks (comma-separated)"
)
@click.option("--verbose", "-v", is_flag=True, help="Enable DEBUG level logging")
@click.option("--trace", is_flag=True, help="Enable TRACE level logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
@click.pass_context
def cli(ctx, config_file, input_file, policy, breaks, verbose, trace, log_file):
    """Classify census tracts and render a choropleth map."""
    setup_logging(verbose=verbose, enable_trace=trace)

    if log_file:
        log_level = "TRACE" if trace else ("DEBUG" if verbose else "INFO")
        logger.add(
            log_file,
            level=log_level,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="7 days",
        )
        logger.info(f"📄 Also logging to file: {log_file}")

    config_ctx = ConfigContext(config_file)
    if input_file:
        config_ctx.input_override = Path(input_file)
    if policy:
        config_ctx.add_override("classification.policy", policy)
    if breaks is not None:
        config_ctx.add_override("classification.fixed_breaks", breaks)
    ctx.obj = config_ctx


@cli.command()
@click.option(
    "--output", "-o", type=click.Path(dir_okay=False), help="Write annotated GeoJSON here"
)
@click.pass_context
def classify(ctx, output):
    """Classify tracts and report breaks and legend."""

    def action(config_ctx: ConfigContext) -> None:
        choropleth = config_ctx.load_choropleth()
        choropleth.log_summary()
        for label in choropleth.labels:
            click.echo(label)

        if output:
            output_path = Path(output)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w", encoding="utf-8") as f:
                json.dump(choropleth.to_geojson(), f, allow_nan=False)
            logger.success(f"  ✅ Annotated GeoJSON saved: {output_path}")

    _run(ctx, "Classifying tracts", action)


@cli.command()
@click.argument("tract_id")
@click.pass_context
def inspect(ctx, tract_id):
    """Print the info card for TRACT_ID."""

    def action(config_ctx: ConfigContext) -> None:
        config = config_ctx.load_config()
        choropleth = config_ctx.load_choropleth(config)
        matches = choropleth.find(tract_id)
        if not matches:
            logger.error(f"❌ No tract with id '{tract_id}'")
            ctx.exit(1)
        if len(matches) > 1:
            logger.warning(f"⚠️ {len(matches)} tracts share id '{tract_id}', showing the first")

        record = choropleth.present(
            matches[0], headline_label=config.get_visualization_setting("headline_label")
        )
        click.echo(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))

    _run(ctx, f"Inspecting tract {tract_id}", action)


@cli.command("build-map")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="HTML output path")
@click.pass_context
def build_map(ctx, output):
    """Render the interactive HTML map."""
    from analysis.map_tracts import save_tract_map

    def action(config_ctx: ConfigContext) -> None:
        config = config_ctx.load_config()
        choropleth = config_ctx.load_choropleth(config)
        path = save_tract_map(choropleth, config, Path(output) if output else None)
        click.echo(str(path))

    _run(ctx, "Building tract map", action)


if __name__ == "__main__":
    cli()

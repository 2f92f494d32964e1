"""hyperdune CLI: export Hyperliquid node trades to a Dune table."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from hyperdune.config import ExportConfig
from hyperdune.dune import DuneClient, MemorySink, UploadSink
from hyperdune.errors import ExportError, format_error_chain
from hyperdune.pipeline import BatchRange, ExportSummary, run_batch_range

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _setup_logging(log_level: str) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


async def _export(
    config: ExportConfig,
    batch_range: BatchRange,
    sink: UploadSink,
    reset_table: bool,
) -> ExportSummary:
    if reset_table:
        logger.info("Clearing or creating the table...")
        await sink.create_or_reset_table()
    return await run_batch_range(config.hyperliquid_data_dir, batch_range, sink)


async def _export_to_dune(
    config: ExportConfig,
    batch_range: BatchRange,
    reset_table: bool,
) -> ExportSummary:
    async with DuneClient.from_config(config) as client:
        return await _export(config, batch_range, client, reset_table)


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to hyperdune.toml config file.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    help="Set logging verbosity.",
)
@click.option(
    "--look-back-days",
    type=click.IntRange(min=0),
    default=None,
    help="Override look_back_period_days from the config.",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Override hyperliquid_data_dir from the config.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Extract and count trades without touching Dune.",
)
@click.option(
    "--no-reset",
    is_flag=True,
    default=False,
    help="Append to the existing table instead of clearing it first.",
)
def cli(
    config_path: str | None,
    log_level: str,
    look_back_days: int | None,
    data_dir: Path | None,
    dry_run: bool,
    no_reset: bool,
) -> None:
    """hyperdune - export Hyperliquid node trades to Dune.

    Reads {data_dir}/{YYYYMMDD}/{0..23} hour files for every day in the
    look-back window and inserts each day's trades into the configured
    Dune table as one batch.

    \b
    Config lookup order:
      --config PATH > HYPERDUNE_CONFIG env > ./hyperdune.toml
    The API key may be supplied via the DUNE_API_KEY env var.

    \b
    Examples:
      hyperdune --config hyperdune.toml
      hyperdune --look-back-days 3 --no-reset
      hyperdune --dry-run --data-dir ~/hl/data/node_trades/hourly
    """
    _setup_logging(log_level)

    try:
        config = ExportConfig.find_and_load(config_path)
    except (OSError, ValueError) as exc:
        click.echo(f"Failed to load configuration: {exc}", err=True)
        raise SystemExit(1)
    if config is None:
        raise click.UsageError(
            "No config found. Pass --config, set HYPERDUNE_CONFIG, or create ./hyperdune.toml."
        )

    overrides: dict = {}
    if look_back_days is not None:
        overrides["look_back_period_days"] = look_back_days
    if data_dir is not None:
        overrides["hyperliquid_data_dir"] = data_dir
    if overrides:
        config = config.model_copy(update=overrides)

    if not dry_run and not config.dune_api_key:
        raise click.UsageError("No Dune API key. Set dune_api_key in the config or DUNE_API_KEY.")

    batch_range = BatchRange.from_look_back(config.look_back_period_days)
    click.echo(
        f"Exporting trades from {batch_range.start} to {batch_range.end} "
        f"({len(batch_range)} days){' [dry run]' if dry_run else ''}..."
    )

    try:
        if dry_run:
            summary = asyncio.run(_export(config, batch_range, MemorySink(), reset_table=False))
        else:
            summary = asyncio.run(_export_to_dune(config, batch_range, reset_table=not no_reset))
    except ExportError as exc:
        click.echo(f"Export failed: {format_error_chain(exc)}", err=True)
        raise SystemExit(1)

    verb = "found" if dry_run else "uploaded"
    click.echo(
        f"Done. {summary.trades_uploaded} trades {verb} "
        f"across {summary.days_uploaded} of {summary.days_processed} days."
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

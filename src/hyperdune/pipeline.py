"""Export pipeline: walk a range of days, extract each one, upload it.

Days are processed strictly in order and independently of one another.
Each non-empty day is sent to the sink as a single batch; the first
failure aborts the run so it can be re-run once the cause is fixed.
"""

from __future__ import annotations

import logging
import time as time_mod
from collections.abc import Iterator
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from pydantic import BaseModel, model_validator

from hyperdune.dune.base import UploadSink
from hyperdune.errors import DayExportError, NodeDataReadError, TradeParseError
from hyperdune.ingestion.node_data import extract_day

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


class BatchRange(BaseModel):
    """Inclusive range of calendar days to export."""

    start: date
    end: date

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_order(self) -> BatchRange:
        if self.start > self.end:
            raise ValueError(f"start ({self.start}) must not be after end ({self.end})")
        return self

    @classmethod
    def from_look_back(cls, days: int, now: datetime | None = None) -> BatchRange:
        """Range ending today (UTC) and starting ``days`` days earlier."""
        if days < 0:
            raise ValueError(f"look-back period must be >= 0, got {days}")
        end_time = now or datetime.now(UTC)
        start_time = end_time - timedelta(days=days)
        return cls(start=start_time.date(), end=end_time.date())

    def days(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += ONE_DAY

    def __len__(self) -> int:
        return (self.end - self.start).days + 1


class ExportSummary(BaseModel):
    """Totals for a completed export run."""

    days_processed: int = 0
    days_uploaded: int = 0
    trades_uploaded: int = 0


async def run_export(
    data_root: Path,
    start_day: date,
    end_day: date,
    sink: UploadSink,
) -> ExportSummary:
    """Export every day from ``start_day`` to ``end_day`` inclusive.

    Days without trades are skipped without contacting the sink. Each other
    day is inserted with exactly one ``sink.insert`` call.

    Args:
        data_root: Root of the node's hourly trade data.
        start_day: First day to export.
        end_day: Last day to export. Nothing is done if before ``start_day``.
        sink: Destination for each day's batch.

    Returns:
        Counts of processed days, uploaded days and uploaded trades.

    Raises:
        DayExportError: On the first day whose extraction or insert fails,
            chained to the underlying error. Later days are not processed.
    """
    summary = ExportSummary()
    start_time = time_mod.time()
    batch_day = start_day

    logger.info(
        "Starting export to %s: %s to %s",
        sink.name,
        start_day.isoformat(),
        end_day.isoformat(),
    )

    while batch_day <= end_day:
        try:
            trades = extract_day(data_root, batch_day)
        except (TradeParseError, NodeDataReadError) as exc:
            logger.error("Extraction failed for %s: %s", batch_day.isoformat(), exc)
            raise DayExportError(batch_day, "extract") from exc

        summary.days_processed += 1

        if not trades:
            logger.info("No trades found for %s. Skipping to next day.", batch_day.isoformat())
            batch_day += ONE_DAY
            continue

        logger.info("Inserting %d trades for %s...", len(trades), batch_day.isoformat())
        try:
            await sink.insert(trades)
        except Exception as exc:
            logger.error("Insert failed for %s: %s", batch_day.isoformat(), exc)
            raise DayExportError(batch_day, "insert", len(trades), destination=sink.name) from exc

        summary.days_uploaded += 1
        summary.trades_uploaded += len(trades)
        batch_day += ONE_DAY

    logger.info(
        "Export complete: %d trades from %d of %d days in %s",
        summary.trades_uploaded,
        summary.days_uploaded,
        summary.days_processed,
        _format_elapsed(time_mod.time() - start_time),
    )
    return summary


async def run_batch_range(data_root: Path, batch_range: BatchRange, sink: UploadSink) -> ExportSummary:
    return await run_export(data_root, batch_range.start, batch_range.end, sink)


def _format_elapsed(seconds: float) -> str:
    """Format seconds into a human-readable string."""
    if seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        return f"{seconds / 60:.1f}m"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"

"""Read trades from a Hyperliquid node's on-disk trade logs.

The node writes one directory per UTC day and one file per hour inside it:

    {data_root}/{YYYYMMDD}/{0..23}

Hour files are newline-delimited JSON. They are visited by name in hour
order, never by directory listing, so output order does not depend on the
filesystem.
"""

import logging
from collections.abc import Callable, Iterator
from datetime import date
from pathlib import Path

from hyperdune.errors import NodeDataReadError
from hyperdune.ingestion.models import Trade
from hyperdune.ingestion.parser import parse_line

logger = logging.getLogger(__name__)

DAY_DIR_FORMAT = "%Y%m%d"
HOURS_PER_DAY = 24


def day_directory(data_root: Path, day: date) -> Path:
    """Directory holding the hour files for ``day``."""
    return Path(data_root) / day.strftime(DAY_DIR_FORMAT)


def hour_files(day_dir: Path) -> Iterator[Path]:
    """Yield the hour files present in ``day_dir``, hour 0 first.

    Missing hours are skipped; partial days and maintenance gaps are normal.

    Raises:
        NodeDataReadError: If an hour path cannot be inspected, e.g. EACCES.
    """
    for hour in range(HOURS_PER_DAY):
        path = day_dir / str(hour)
        if _exists(path, Path.is_file):
            yield path


def _exists(path: Path, check: Callable[[Path], bool]) -> bool:
    # is_file/is_dir return False for a missing path but raise on other errors
    try:
        return check(path)
    except OSError as exc:
        raise NodeDataReadError(path, exc) from exc


def read_hour_file(path: Path, day: date) -> list[Trade]:
    """Parse every trade for ``day`` from a single hour file.

    Raises:
        NodeDataReadError: If the file cannot be opened, read or decoded.
        TradeParseError: If a relevant line is malformed.
    """
    trades: list[Trade] = []
    skipped = 0
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                trade = parse_line(line, day, source=path)
                if trade is None:
                    skipped += 1
                else:
                    trades.append(trade)
    except (OSError, UnicodeDecodeError) as exc:
        raise NodeDataReadError(path, exc) from exc

    logger.debug("%s: %d trades, %d lines not applicable", path, len(trades), skipped)
    return trades


def extract_day(data_root: Path, day: date) -> list[Trade]:
    """Collect all trades for one UTC day, in hour-file then line order.

    Args:
        data_root: Root of the node's trade data, e.g. ``~/hl/data/node_trades/hourly``.
        day: Calendar day to extract.

    Returns:
        Trades in encounter order. Empty if the day directory does not exist.

    Raises:
        NodeDataReadError: If the day directory or an existing hour file
            cannot be inspected or read.
        TradeParseError: If any relevant line is malformed.
    """
    day_dir = day_directory(data_root, day)
    logger.info("Processing data for %s in %s", day.isoformat(), data_root)

    if not _exists(day_dir, Path.is_dir):
        logger.info("No data found for %s", day.isoformat())
        return []

    trades: list[Trade] = []
    for path in hour_files(day_dir):
        hour_trades = read_hour_file(path, day)
        logger.info("Read hour file %s: %d trades", path, len(hour_trades))
        trades.extend(hour_trades)
    return trades

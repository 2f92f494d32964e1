"""Parse raw Hyperliquid node log lines into Trade models.

Each line of an hour file is one JSON event. Only fills that carry exactly
two ``side_info`` entries are trades; every other event shape is ignored.
A relevant event with a missing or malformed field is treated as file
corruption and raises :class:`TradeParseError` rather than being skipped.
"""

from __future__ import annotations

import json
import math
import re
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any

from hyperdune.errors import TradeParseError
from hyperdune.ingestion.models import MAX_OID, SideInfo, Trade

TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"
_TIME_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}", re.ASCII)
_DECIMAL_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

SIDE_COUNT = 2


def parse_time(value: str) -> datetime:
    """Parse a node timestamp (``YYYY-MM-DDTHH:MM:SS.sss``, implicitly UTC).

    Raises:
        ValueError: If the string does not match the format exactly.
    """
    if not _TIME_PATTERN.fullmatch(value):
        raise ValueError(f"time {value!r} does not match YYYY-MM-DDTHH:MM:SS.sss")
    return datetime.strptime(value, TIME_FORMAT).replace(tzinfo=UTC)


def parse_decimal(value: str) -> float:
    """Parse a string-encoded decimal number into a float.

    Stricter than ``float()``: surrounding whitespace, underscores, ``inf``
    and ``nan`` are rejected.
    """
    if not _DECIMAL_PATTERN.fullmatch(value):
        raise ValueError(f"{value!r} is not a decimal number")
    result = float(value)
    if not math.isfinite(result):
        raise ValueError(f"{value!r} overflows a 64-bit float")
    return result


class _LineParser:
    """Field accessors that raise TradeParseError tagged with the line and file."""

    def __init__(self, line: str, source: Path | None) -> None:
        self.line = line
        self.source = source

    def fail(self, field: str, reason: str) -> TradeParseError:
        return TradeParseError(field, self.line, self.source, reason)

    def string(self, obj: dict[str, Any], key: str, field: str, non_empty: bool = True) -> str:
        value = obj.get(key)
        if value is None:
            raise self.fail(field, "missing")
        if not isinstance(value, str):
            raise self.fail(field, f"expected string, got {type(value).__name__}")
        if non_empty and not value:
            raise self.fail(field, "empty string")
        return value

    def decimal(self, obj: dict[str, Any], key: str, field: str) -> float:
        raw = self.string(obj, key, field)
        try:
            return parse_decimal(raw)
        except ValueError as exc:
            raise self.fail(field, str(exc)) from exc

    def oid(self, obj: dict[str, Any], field: str) -> int:
        value = obj.get("oid")
        if value is None:
            raise self.fail(field, "missing")
        # bool is an int subclass; JSON true/false is not an order id
        if isinstance(value, bool) or not isinstance(value, int):
            raise self.fail(field, f"expected unsigned integer, got {value!r}")
        if not 0 <= value < MAX_OID:
            raise self.fail(field, f"{value} is outside the unsigned 64-bit range")
        return value

    def side(self, raw: Any, index: int) -> SideInfo:
        prefix = f"side_info[{index}]"
        if not isinstance(raw, dict):
            raise self.fail(prefix, f"expected object, got {type(raw).__name__}")
        twap_id = raw.get("twap_id")
        cloid = raw.get("cloid")
        return SideInfo(
            user=self.string(raw, "user", f"{prefix}.user", non_empty=False),
            start_pos=self.decimal(raw, "start_pos", f"{prefix}.start_pos"),
            oid=self.oid(raw, f"{prefix}.oid"),
            twap_id=twap_id if isinstance(twap_id, str) else None,
            cloid=cloid if isinstance(cloid, str) else None,
        )


def parse_line(raw_line: str, target_day: date, source: Path | None = None) -> Trade | None:
    """Parse one node log line into a Trade.

    Args:
        raw_line: A single line of newline-delimited JSON.
        target_day: The UTC calendar day being extracted.
        source: File the line came from, attached to any parse error.

    Returns:
        The Trade, or None when the line is not applicable: not a two-sided
        fill, or a fill whose timestamp falls on a different day.

    Raises:
        TradeParseError: If the line is not valid JSON, or a two-sided fill
            on ``target_day`` has a missing or malformed required field.
    """
    line = raw_line.rstrip("\r\n")
    if not line.strip():
        return None

    p = _LineParser(line, source)
    try:
        event = json.loads(line)
    except json.JSONDecodeError as exc:
        raise p.fail("<json>", exc.msg) from exc

    if not isinstance(event, dict):
        return None
    side_info = event.get("side_info")
    if not isinstance(side_info, list) or len(side_info) != SIDE_COUNT:
        return None

    time_str = p.string(event, "time", "time")
    try:
        time = parse_time(time_str)
    except ValueError as exc:
        raise p.fail("time", str(exc)) from exc

    if time.date() != target_day:
        return None

    return Trade(
        coin=p.string(event, "coin", "coin"),
        side=p.string(event, "side", "side"),
        time=time,
        px=p.decimal(event, "px", "px"),
        sz=p.decimal(event, "sz", "sz"),
        hash=p.string(event, "hash", "hash"),
        trade_dir_override=p.string(event, "trade_dir_override", "trade_dir_override"),
        side_a=p.side(side_info[0], 0),
        side_b=p.side(side_info[1], 1),
    )

"""Column layout of the Dune trade table.

Side info is flattened into ``_a``/``_b`` columns rather than stored as a
JSON column, so both counterparties can be filtered on directly in queries.
"""

import json
from collections.abc import Iterable

from hyperdune.ingestion.models import Trade

_SIDE_COLUMNS = [
    ("user", "varchar", False),
    ("start_pos", "double", False),
    ("oid", "uint256", False),
    ("twap_id", "varchar", True),
    ("cloid", "varchar", True),
]


def _column(name: str, type_: str, nullable: bool = False) -> dict:
    column: dict = {"name": name, "type": type_}
    if nullable:
        column["nullable"] = True
    return column


TRADE_TABLE_SCHEMA: list[dict] = [
    _column("coin", "varchar"),
    _column("side", "varchar"),
    _column("time", "timestamp"),
    _column("px", "double"),
    _column("sz", "double"),
    _column("hash", "varchar"),
    _column("trade_dir_override", "varchar"),
    *(
        _column(f"{name}_{suffix}", type_, nullable)
        for suffix in ("a", "b")
        for name, type_, nullable in _SIDE_COLUMNS
    ),
]


def to_ndjson(trades: Iterable[Trade]) -> bytes:
    """Encode trades as newline-delimited JSON rows matching the table schema."""
    return "\n".join(json.dumps(trade.to_row()) for trade in trades).encode("utf-8")

"""Upload layer: sends extracted trades to a Dune table."""

from hyperdune.dune.base import UploadSink
from hyperdune.dune.client import DuneClient
from hyperdune.dune.memory import MemorySink
from hyperdune.dune.schema import TRADE_TABLE_SCHEMA, to_ndjson

__all__ = [
    "UploadSink",
    # Destinations
    "DuneClient",
    "MemorySink",
    # Wire format
    "TRADE_TABLE_SCHEMA",
    "to_ndjson",
]

"""In-memory upload sink used for dry runs."""

import logging
from collections.abc import Sequence

from hyperdune.dune.base import UploadSink
from hyperdune.ingestion.models import Trade

logger = logging.getLogger(__name__)


class MemorySink(UploadSink):
    """Keeps every inserted batch instead of sending it anywhere."""

    def __init__(self) -> None:
        self.batches: list[list[Trade]] = []
        self.resets = 0

    @property
    def name(self) -> str:
        return "memory"

    @property
    def total_rows(self) -> int:
        return sum(len(batch) for batch in self.batches)

    async def create_or_reset_table(self) -> None:
        self.batches.clear()
        self.resets += 1

    async def insert(self, trades: Sequence[Trade]) -> int:
        self.batches.append(list(trades))
        logger.info("Dry run: kept %d trades in memory (not uploaded)", len(trades))
        return len(trades)

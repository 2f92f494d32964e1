"""Abstract base class for upload destinations."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from hyperdune.ingestion.models import Trade


class UploadSink(ABC):
    """Interface that every trade upload destination must implement."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier for this destination, e.g. 'dune'."""
        ...

    @abstractmethod
    async def create_or_reset_table(self) -> None:
        """Ensure the destination table exists and holds no rows."""
        ...

    @abstractmethod
    async def insert(self, trades: Sequence[Trade]) -> int:
        """Insert one day's trades as a single batch.

        Args:
            trades: Trades for one calendar day, in extraction order.

        Returns:
            Number of rows the destination reports as written.
        """
        ...

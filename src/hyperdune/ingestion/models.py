"""Trade data models."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

MAX_OID = 2**64


class SideInfo(BaseModel):
    """One counterparty of a fill, as recorded by the node."""

    user: str = Field(description="Counterparty wallet address")
    start_pos: float = Field(description="Position size before this fill")
    oid: int = Field(ge=0, lt=MAX_OID, description="Order id (unsigned 64-bit)")
    twap_id: str | None = Field(default=None, description="TWAP id, if the order was a TWAP slice")
    cloid: str | None = Field(default=None, description="Client order id, if one was set")

    model_config = {"frozen": True}


class Trade(BaseModel):
    """A single trade read from a Hyperliquid node's hourly log.

    Prices and sizes are 64-bit floats, matching the ``double`` columns of
    the Dune table they are exported to.
    """

    coin: str = Field(min_length=1, description="Traded asset, e.g. 'BTC' or '@107'")
    side: str = Field(min_length=1, description="Aggressor side: 'A' (ask) or 'B' (bid)")
    time: datetime = Field(description="Execution time in UTC")
    px: float = Field(description="Execution price")
    sz: float = Field(description="Execution size")
    hash: str = Field(min_length=1, description="L1 transaction hash")
    trade_dir_override: str = Field(min_length=1, description="Direction override, e.g. 'Na'")
    side_a: SideInfo
    side_b: SideInfo

    model_config = {"frozen": True}

    def to_row(self) -> dict[str, Any]:
        """Flatten into the column layout of the Dune trade table."""
        row: dict[str, Any] = {
            "coin": self.coin,
            "side": self.side,
            "time": self.time.isoformat(timespec="milliseconds"),
            "px": self.px,
            "sz": self.sz,
            "hash": self.hash,
            "trade_dir_override": self.trade_dir_override,
        }
        for suffix, info in (("a", self.side_a), ("b", self.side_b)):
            row[f"user_{suffix}"] = info.user
            row[f"start_pos_{suffix}"] = info.start_pos
            row[f"oid_{suffix}"] = info.oid
            row[f"twap_id_{suffix}"] = info.twap_id
            row[f"cloid_{suffix}"] = info.cloid
        return row

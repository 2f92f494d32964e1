"""Dune uploads API client.

Uses the table endpoints of the Dune API (API key required):
  POST /api/v1/table/create
  POST /api/v1/table/{namespace}/{table_name}/clear
  POST /api/v1/table/{namespace}/{table_name}/insert

Inserts are sent as NDJSON, one request per day. Failed requests are not
retried; the exporter is meant to be re-run once the cause is fixed.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx

from hyperdune.dune.base import UploadSink
from hyperdune.dune.schema import TRADE_TABLE_SCHEMA, to_ndjson
from hyperdune.errors import DuneAPIError
from hyperdune.ingestion.models import Trade

if TYPE_CHECKING:
    from hyperdune.config import ExportConfig

logger = logging.getLogger(__name__)

BASE_URL = "https://api.dune.com/api/v1"
API_KEY_HEADER = "X-DUNE-API-KEY"
NDJSON_CONTENT_TYPE = "application/x-ndjson"
DEFAULT_TIMEOUT = 120.0
DEFAULT_DESCRIPTION = "Hyperliquid node trade data"


class DuneClient(UploadSink):
    """Creates, clears and appends to a single Dune table."""

    def __init__(
        self,
        api_key: str,
        namespace: str,
        table_name: str,
        description: str = DEFAULT_DESCRIPTION,
        is_private: bool = False,
        base_url: str = BASE_URL,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.namespace = namespace
        self.table_name = table_name
        self.description = description
        self.is_private = is_private
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            headers={API_KEY_HEADER: api_key},
            timeout=DEFAULT_TIMEOUT,
        )

    @classmethod
    def from_config(cls, config: ExportConfig) -> DuneClient:
        return cls(
            api_key=config.dune_api_key,
            namespace=config.dune_user_namespace,
            table_name=config.dune_table_name,
            description=config.table_description,
            is_private=config.is_private,
        )

    @property
    def name(self) -> str:
        return "dune"

    @property
    def full_name(self) -> str:
        return f"dune.{self.namespace}.{self.table_name}"

    def _table_path(self, action: str) -> str:
        return f"/table/{self.namespace}/{self.table_name}/{action}"

    async def _post(self, operation: str, url: str, **kwargs: Any) -> httpx.Response:
        """POST and raise DuneAPIError on transport failure or a non-2xx status."""
        try:
            response = await self._client.post(url, **kwargs)
        except httpx.HTTPError as exc:
            raise DuneAPIError(operation, body=str(exc)) from exc
        if not response.is_success:
            raise DuneAPIError(operation, response.status_code, response.text)
        return response

    async def create_table(self) -> dict:
        """Create the trade table with the flattened trade schema."""
        payload = {
            "namespace": self.namespace,
            "table_name": self.table_name,
            "description": self.description,
            "is_private": self.is_private,
            "schema": TRADE_TABLE_SCHEMA,
        }
        response = await self._post("create table", "/table/create", json=payload)
        data = _json_body(response)
        if data.get("already_existed"):
            logger.info("Table %s already exists", self.full_name)
        else:
            logger.info("Created table %s", self.full_name)
        return data

    async def clear_table(self) -> None:
        """Delete every row of the trade table, keeping its schema."""
        await self._post("clear table", self._table_path("clear"))
        logger.info("Cleared table %s", self.full_name)

    async def create_or_reset_table(self) -> None:
        """Clear the table, creating it first if Dune reports it missing."""
        try:
            await self.clear_table()
        except DuneAPIError as exc:
            if exc.status_code != httpx.codes.NOT_FOUND:
                raise
            logger.info("Table %s not found, creating it", self.full_name)
            await self.create_table()

    async def insert(self, trades: Sequence[Trade]) -> int:
        """Append trades to the table in one NDJSON request.

        Returns:
            ``rows_written`` as reported by Dune, or the number of trades
            sent when the response does not include it.
        """
        if not trades:
            return 0
        logger.info("Inserting %d trades into %s...", len(trades), self.full_name)
        response = await self._post(
            "insert",
            self._table_path("insert"),
            content=to_ndjson(trades),
            headers={"Content-Type": NDJSON_CONTENT_TYPE},
        )
        rows = _json_body(response).get("rows_written")
        if not isinstance(rows, int):
            rows = len(trades)
        logger.info("Inserted %d rows into %s", rows, self.full_name)
        return rows

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> DuneClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()


def _json_body(response: httpx.Response) -> dict:
    """Response JSON object, or an empty dict when the body is not one."""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}

"""Rate plan codes stored on the hotel row, reached through the Supabase client."""
from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from rate_console.config import RATE_PLAN_TABLE, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL
from rate_console.errors import HotelNotFound, StoreError
from rate_console.models import EntityId
from rate_console.selection import parse_rate_plan_codes

CODES_COLUMN = "rate_plan_code"

logger = logging.getLogger(__name__)


class SupabaseRatePlanCodeStore:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        table: str = RATE_PLAN_TABLE,
        client: Client | None = None,
    ):
        if client is None:
            base_url = base_url or SUPABASE_URL
            api_key = api_key or SUPABASE_SERVICE_ROLE_KEY
            if not base_url or not api_key:
                raise StoreError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
            client = create_client(base_url, api_key)
        self.client = client
        self.table_name = table

    async def read(self, entity_id: EntityId) -> list[str]:
        column, value = entity_id.lookup
        query = (
            self.client.table(self.table_name)
            .select(f"sabre_id,paragon_id,{CODES_COLUMN}")
            .eq(column, value)
            .limit(1)
        )
        rows = await self._execute("read", query)
        if not rows:
            raise HotelNotFound("Hotel not found", status_code=404)
        return parse_rate_plan_codes(rows[0].get(CODES_COLUMN))

    async def write(self, entity_id: EntityId, codes: list[str]) -> None:
        column, value = entity_id.lookup
        # An empty selection is stored as NULL, not as an empty array.
        query = self.client.table(self.table_name).update({CODES_COLUMN: list(codes) or None}).eq(column, value)
        rows = await self._execute("write", query)
        if not rows:
            raise HotelNotFound("Hotel not found", status_code=404)

    async def _execute(self, operation: str, query: Any) -> list[dict[str, Any]]:
        # The sync client blocks, so requests run off the event loop.
        try:
            response = await asyncio.to_thread(query.execute)
        except APIError as exc:
            message = exc.message or "Store request failed"
            logger.error(
                "rate_plan_store_failed",
                extra={"operation": operation, "code": exc.code, "error": message},
            )
            raise StoreError(message) from exc
        except httpx.HTTPError as exc:
            logger.error("rate_plan_store_unreachable", extra={"operation": operation, "error": str(exc)})
            raise StoreError(f"Store request failed: {exc}") from exc

        data = response.data
        return [row for row in data if isinstance(row, dict)] if isinstance(data, list) else []

from __future__ import annotations

from rate_console.errors import HotelNotFound
from rate_console.models import EntityId


class InMemoryRatePlanCodeStore:
    """Dict-backed store used when no database is configured."""

    def __init__(self, records: dict[EntityId, list[str]] | None = None, create_missing: bool = True):
        self.records: dict[EntityId, list[str]] = {key: list(value) for key, value in (records or {}).items()}
        self.create_missing = create_missing

    async def read(self, entity_id: EntityId) -> list[str]:
        if entity_id not in self.records:
            if not self.create_missing:
                raise HotelNotFound("Hotel not found", status_code=404)
            return []
        return list(self.records[entity_id])

    async def write(self, entity_id: EntityId, codes: list[str]) -> None:
        if entity_id not in self.records and not self.create_missing:
            raise HotelNotFound("Hotel not found", status_code=404)
        self.records[entity_id] = list(codes)

from __future__ import annotations

from typing import Protocol

from rate_console.models import EntityId


class RatePlanCodeStore(Protocol):
    async def read(self, entity_id: EntityId) -> list[str]:
        ...

    async def write(self, entity_id: EntityId, codes: list[str]) -> None:
        ...

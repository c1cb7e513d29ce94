from __future__ import annotations

from typing import Any, Protocol

from rate_console.models import StayQuery


class RateProvider(Protocol):
    async def fetch_hotel_details(
        self,
        sabre_id: str,
        stay: StayQuery,
        rate_plan_codes: list[str] | None = None,
    ) -> dict[str, Any]:
        ...

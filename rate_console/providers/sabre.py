from __future__ import annotations

import logging
from typing import Any

import httpx

from rate_console.client import build_hotel_details_request, call_hotel_details
from rate_console.config import RATE_API_URL
from rate_console.models import StayQuery

logger = logging.getLogger(__name__)


class SabreRateProvider:
    provider_name = "sabre"

    def __init__(self, url: str = RATE_API_URL, transport: httpx.AsyncBaseTransport | None = None):
        self.url = url
        self.transport = transport

    async def fetch_hotel_details(
        self,
        sabre_id: str,
        stay: StayQuery,
        rate_plan_codes: list[str] | None = None,
    ) -> dict[str, Any]:
        payload = build_hotel_details_request(sabre_id, stay, rate_plan_codes)
        logger.info(
            "rate_fetch_started",
            extra={"hotel": sabre_id, "codes": payload.get("RatePlanCode", []), "check_in": payload["StartDate"]},
        )
        return await call_hotel_details(payload, url=self.url, transport=self.transport)

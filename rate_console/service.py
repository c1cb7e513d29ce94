from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable

from pydantic import ValidationError

from rate_console.config import (
    RATE_API_CURRENCY,
    ROOM_URL_BASE,
    SUPABASE_SERVICE_ROLE_KEY,
    SUPABASE_URL,
    allowed_rate_plan_codes,
)
from rate_console.errors import HotelNotFound, StoreError, UnexpectedResponseFormat, UpstreamError
from rate_console.extractors import extract_rate_plan_rows, extract_room_offer_rows
from rate_console.models import (
    ApiError,
    EntityId,
    ErrorEnvelope,
    RatePlanSearchResponse,
    RoomOfferSearchResponse,
    RoomUrlResponse,
    StayQuery,
)
from rate_console.providers.base import RateProvider
from rate_console.providers.sabre import SabreRateProvider
from rate_console.ranking import sort_by_price
from rate_console.selection import SelectionReconciler, clean_rate_plan_codes
from rate_console.stores.base import RatePlanCodeStore
from rate_console.stores.memory import InMemoryRatePlanCodeStore
from rate_console.stores.supabase import SupabaseRatePlanCodeStore
from rate_console.urls import compose_from_row, compose_room_url, parse_room_url

CONTRACT_VERSION = "v1"

logger = logging.getLogger(__name__)


class RateConsoleService:
    def __init__(
        self,
        provider: RateProvider | None = None,
        store: RatePlanCodeStore | None = None,
        allowed_codes: list[str] | None = None,
        base_url: str = ROOM_URL_BASE,
    ):
        self.provider: RateProvider = provider or SabreRateProvider()
        self.store: RatePlanCodeStore = store or default_store()
        self.allowed_codes = list(allowed_codes) if allowed_codes is not None else allowed_rate_plan_codes()
        self.base_url = base_url
        self._panels: dict[EntityId, SelectionReconciler] = {}
        self._fetch_sequence: dict[str, int] = {}

    def list_rate_plan_codes(self) -> dict[str, Any]:
        return {"codes": list(self.allowed_codes), "contract_version": CONTRACT_VERSION}

    async def search_rate_plans(
        self,
        sabre_id: str,
        paragon_id: str | None = None,
        check_in: str | None = None,
        check_out: str | None = None,
        adults: int = 2,
        children: int = 0,
        currency_code: str | None = None,
        rate_plan_codes: list[str] | None = None,
    ) -> dict[str, Any]:
        return await self._search(
            sabre_id, paragon_id, check_in, check_out, adults, children, currency_code, rate_plan_codes,
            build=lambda entity, stay, raw, metadata: RatePlanSearchResponse(
                **entity.as_dict(),
                query=stay.model_dump(mode="json"),
                metadata=metadata,
                rows=sort_by_price(extract_rate_plan_rows(raw)),
            ),
        )

    async def search_room_offers(
        self,
        sabre_id: str,
        paragon_id: str | None = None,
        check_in: str | None = None,
        check_out: str | None = None,
        adults: int = 2,
        children: int = 0,
        currency_code: str | None = None,
        rate_plan_codes: list[str] | None = None,
    ) -> dict[str, Any]:
        return await self._search(
            sabre_id, paragon_id, check_in, check_out, adults, children, currency_code, rate_plan_codes,
            build=lambda entity, stay, raw, metadata: RoomOfferSearchResponse(
                **entity.as_dict(),
                query=stay.model_dump(mode="json"),
                metadata=metadata,
                offers=sort_by_price(extract_room_offer_rows(raw)),
            ),
        )

    async def open_rate_plan_selection(self, sabre_id: str, paragon_id: str | None = None) -> dict[str, Any]:
        entity = _entity(sabre_id, paragon_id)
        if isinstance(entity, dict):
            return entity

        try:
            persisted = await self.store.read(entity)
        except HotelNotFound as exc:
            return error_envelope("HOTEL_NOT_FOUND", exc.message, details=entity.as_dict())
        except StoreError as exc:
            return error_envelope("STORE_UNAVAILABLE", exc.message, retryable=True, details=entity.as_dict())

        panel = SelectionReconciler(self.store)
        panel.initialize(entity, persisted)
        self._panels[entity] = panel
        return self._selection_payload(panel)

    def toggle_rate_plan_code(self, sabre_id: str, code: str, paragon_id: str | None = None) -> dict[str, Any]:
        panel = self._panel(sabre_id, paragon_id)
        if isinstance(panel, dict):
            return panel
        try:
            panel.toggle(code)
        except ValueError as exc:
            return error_envelope("INVALID_RATE_PLAN_CODE", str(exc), details={"code": code})
        return self._selection_payload(panel)

    def replace_rate_plan_codes(self, sabre_id: str, codes: list[str], paragon_id: str | None = None) -> dict[str, Any]:
        panel = self._panel(sabre_id, paragon_id)
        if isinstance(panel, dict):
            return panel
        panel.replace_all(codes)
        return self._selection_payload(panel)

    async def save_rate_plan_codes(self, sabre_id: str, paragon_id: str | None = None) -> dict[str, Any]:
        panel = self._panel(sabre_id, paragon_id)
        if isinstance(panel, dict):
            return panel

        _, errors = clean_rate_plan_codes(panel.working_codes, self.allowed_codes)
        if errors:
            return error_envelope(
                "INVALID_RATE_PLAN_CODES",
                "Selection contains codes that are not allowed",
                details={"errors": errors, "allowed_codes": self.allowed_codes},
            )

        try:
            await panel.save()
        except HotelNotFound as exc:
            return error_envelope("HOTEL_NOT_FOUND", exc.message, details=_entity_details(panel))
        except StoreError as exc:
            logger.error("rate_plan_codes_save_failed", extra={"entity": _entity_details(panel), "error": exc.message})
            return error_envelope("SAVE_FAILED", exc.message, retryable=True, details=_entity_details(panel))

        payload = self._selection_payload(panel)
        payload["saved"] = True
        return payload

    def close_rate_plan_selection(self, sabre_id: str, paragon_id: str | None = None) -> dict[str, Any]:
        entity = _entity(sabre_id, paragon_id)
        if isinstance(entity, dict):
            return entity
        panel = self._panels.pop(entity, None)
        return {
            **entity.as_dict(),
            "closed": panel is not None,
            "discarded_changes": bool(panel and panel.is_dirty),
            "contract_version": CONTRACT_VERSION,
        }

    def generate_room_url(
        self,
        sabre_id: str,
        rate_plan_code: str,
        check_in: str | None = None,
        check_out: str | None = None,
        adults: int = 2,
        children: int = 0,
        room_code: str | None = None,
        base_url: str | None = None,
    ) -> dict[str, Any]:
        if not sabre_id:
            return error_envelope("INVALID_ENTITY", "sabre_id is required")
        if not rate_plan_code or not rate_plan_code.strip():
            return error_envelope("MISSING_RATE_PLAN_CODE", "rate_plan_code is required")

        stay = _stay(check_in, check_out, adults, children, None)
        if isinstance(stay, dict):
            return stay

        url = compose_room_url(
            base_url or self.base_url,
            EntityId(sabre_id=sabre_id),
            rate_plan_code.strip(),
            stay,
            room_code=room_code or None,
        )
        payload = RoomUrlResponse(
            url=url,
            sabre_id=sabre_id,
            rate_plan_code=rate_plan_code.strip(),
            room_code=room_code or None,
        ).model_dump(mode="json")
        payload["contract_version"] = CONTRACT_VERSION
        return payload

    async def generate_room_url_for_rate(
        self,
        sabre_id: str,
        rate_key: str,
        paragon_id: str | None = None,
        check_in: str | None = None,
        check_out: str | None = None,
        adults: int = 2,
        children: int = 0,
        currency_code: str | None = None,
        base_url: str | None = None,
    ) -> dict[str, Any]:
        """Re-fetch the stay, pick the row with ``rate_key`` and link to its room and rate plan."""
        entity = _entity(sabre_id, paragon_id)
        if isinstance(entity, dict):
            return entity
        if not entity.sabre_id:
            return error_envelope("INVALID_ENTITY", "sabre_id is required to query rates", details=entity.as_dict())
        if not rate_key or not rate_key.strip():
            return error_envelope("MISSING_RATE_KEY", "rate_key is required")

        stay = _stay(check_in, check_out, adults, children, currency_code)
        if isinstance(stay, dict):
            return stay

        codes = self._panel_codes(entity)
        raw, error = await self._fetch(entity, stay, codes)
        if error is not None:
            return error

        row = next((row for row in extract_rate_plan_rows(raw) if row.rate_key == rate_key.strip()), None)
        if row is None:
            return error_envelope(
                "RATE_NOT_FOUND",
                "No rate with this rate key is offered for the stay",
                details={"rate_key": rate_key.strip(), "rate_plan_codes": codes},
            )

        url = compose_from_row(base_url or self.base_url, entity, row, stay)
        linked = parse_room_url(url, currency_code=stay.currency_code)
        payload = RoomUrlResponse(
            url=url,
            sabre_id=entity.sabre_id,
            rate_plan_code=linked["rate_plan_code"],
            room_code=linked["room_code"],
        ).model_dump(mode="json")
        payload["amount_after_tax"] = row.amount_after_tax
        payload["contract_version"] = CONTRACT_VERSION
        return payload

    async def _search(
        self,
        sabre_id: str,
        paragon_id: str | None,
        check_in: str | None,
        check_out: str | None,
        adults: int,
        children: int,
        currency_code: str | None,
        rate_plan_codes: list[str] | None,
        build: Callable[[EntityId, StayQuery, dict[str, Any], dict[str, Any]], Any],
    ) -> dict[str, Any]:
        entity = _entity(sabre_id, paragon_id)
        if isinstance(entity, dict):
            return entity
        if not entity.sabre_id:
            return error_envelope("INVALID_ENTITY", "sabre_id is required to query rates", details=entity.as_dict())

        stay = _stay(check_in, check_out, adults, children, currency_code)
        if isinstance(stay, dict):
            return stay

        if rate_plan_codes:
            codes, errors = clean_rate_plan_codes(rate_plan_codes, self.allowed_codes)
            if errors or not codes:
                return error_envelope(
                    "INVALID_RATE_PLAN_CODES",
                    "rate_plan_codes must only contain allowed codes",
                    details={"errors": errors, "allowed_codes": self.allowed_codes},
                )
        else:
            codes = self._panel_codes(entity)

        raw, error = await self._fetch(entity, stay, codes)
        if error is not None:
            return error

        metadata = {
            "rate_plan_codes": codes,
            "exact_match_only": bool(codes),
            "defaults_applied": _defaults_applied(check_in, check_out),
            "fetch_sequence": self._fetch_sequence[entity.sabre_id],
        }
        response = build(entity, stay, raw, metadata)
        output = response.model_dump(mode="json")
        rows = output.get("rows", output.get("offers", []))
        output["metadata"]["row_count"] = len(rows)
        output["metadata"]["unpriced_count"] = sum(1 for row in rows if row.get("amount_after_tax") is None)
        output["metadata"]["contract_version"] = CONTRACT_VERSION
        return output

    async def _fetch(
        self, entity: EntityId, stay: StayQuery, codes: list[str]
    ) -> tuple[dict[str, Any], dict[str, Any] | None]:
        # The rate API keys on sabre_id, so every alias of a hotel shares one sequence.
        hotel = entity.sabre_id
        sequence = self._fetch_sequence.get(hotel, 0) + 1
        self._fetch_sequence[hotel] = sequence

        try:
            raw = await self.provider.fetch_hotel_details(hotel, stay, codes)
        except UnexpectedResponseFormat as exc:
            if self._is_stale(hotel, sequence):
                return {}, _superseded(entity, sequence)
            return {}, error_envelope(
                "UNEXPECTED_RESPONSE_FORMAT",
                exc.message,
                retryable=True,
                details={"status_code": exc.status_code, "snippet": exc.snippet},
            )
        except UpstreamError as exc:
            if self._is_stale(hotel, sequence):
                return {}, _superseded(entity, sequence)
            return {}, error_envelope(
                "UPSTREAM_UNAVAILABLE",
                exc.message,
                retryable=exc.status_code is None or exc.status_code >= 500,
                details={"status_code": exc.status_code},
            )

        if self._is_stale(hotel, sequence):
            return {}, _superseded(entity, sequence)
        return raw, None

    def _is_stale(self, hotel: str, sequence: int) -> bool:
        return self._fetch_sequence.get(hotel) != sequence

    def _panel_codes(self, entity: EntityId) -> list[str]:
        # An open panel's working set is the filter, even when the user cleared it.
        panel = self._panels.get(entity)
        return panel.working_codes if panel is not None else []

    def _panel(self, sabre_id: str, paragon_id: str | None) -> SelectionReconciler | dict[str, Any]:
        entity = _entity(sabre_id, paragon_id)
        if isinstance(entity, dict):
            return entity
        panel = self._panels.get(entity)
        if panel is None:
            return error_envelope(
                "SELECTION_NOT_OPEN",
                "Open the rate plan selection for this hotel first",
                details=entity.as_dict(),
            )
        return panel

    def _selection_payload(self, panel: SelectionReconciler) -> dict[str, Any]:
        payload = panel.snapshot(self.allowed_codes).model_dump(mode="json")
        payload["contract_version"] = CONTRACT_VERSION
        return payload


def default_store() -> RatePlanCodeStore:
    if SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY:
        return SupabaseRatePlanCodeStore()
    logger.warning("rate_plan_store_in_memory", extra={"reason": "SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not set"})
    return InMemoryRatePlanCodeStore()


def error_envelope(code: str, message: str, retryable: bool = False, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return ErrorEnvelope(
        error=ApiError(code=code, message=message, retryable=retryable, details=details),
    ).model_dump(mode="json")


def _entity(sabre_id: str | None, paragon_id: str | None) -> EntityId | dict[str, Any]:
    try:
        return EntityId(sabre_id=(sabre_id or "").strip(), paragon_id=(paragon_id or "").strip() or None)
    except ValueError as exc:
        return error_envelope("INVALID_ENTITY", str(exc))


def _entity_details(panel: SelectionReconciler) -> dict[str, Any]:
    return panel.entity_id.as_dict() if panel.entity_id else {}


def _superseded(entity: EntityId, sequence: int) -> dict[str, Any]:
    logger.info("rate_fetch_superseded", extra={"entity": entity.as_dict(), "sequence": sequence})
    return error_envelope(
        "FETCH_SUPERSEDED",
        "A newer rate request for this hotel was started; this response was discarded",
        retryable=True,
        details={"sequence": sequence},
    )


def _stay(
    check_in: str | None,
    check_out: str | None,
    adults: int,
    children: int,
    currency_code: str | None,
) -> StayQuery | dict[str, Any]:
    parsed_in, parsed_out = _normalize_or_default_dates(check_in, check_out)
    if parsed_in is None or parsed_out is None:
        return error_envelope(
            "INVALID_STAY_DATES",
            "check_in/check_out must be dates such as 2026-04-10",
            details={"check_in": check_in, "check_out": check_out},
        )

    try:
        return StayQuery(
            check_in=parsed_in,
            check_out=parsed_out,
            adults=adults,
            children=children,
            currency_code=(currency_code or RATE_API_CURRENCY).strip().upper(),
        )
    except ValidationError as exc:
        return error_envelope(
            "INVALID_STAY_QUERY",
            "stay query validation failed",
            details={"validation_errors": exc.errors(include_url=False, include_context=False, include_input=False)},
        )


def _normalize_or_default_dates(check_in: str | None, check_out: str | None) -> tuple[dt.date | None, dt.date | None]:
    if not check_in:
        today = dt.date.today()
        return today + dt.timedelta(days=14), today + dt.timedelta(days=15)

    parsed_in = _parse_date(check_in)
    if parsed_in is None:
        return None, None
    if not check_out:
        return parsed_in, parsed_in + dt.timedelta(days=1)
    return parsed_in, _parse_date(check_out)


def _defaults_applied(check_in: str | None, check_out: str | None) -> list[str]:
    if not check_in:
        return ["dates"]
    if not check_out:
        return ["check_out"]
    return []


def _parse_date(raw: str) -> dt.date | None:
    candidates = [
        "%Y-%m-%d",
        "%m/%d/%Y",
        "%m-%d-%Y",
        "%Y/%m/%d",
    ]
    value = raw.strip()
    for fmt in candidates:
        try:
            return dt.datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None

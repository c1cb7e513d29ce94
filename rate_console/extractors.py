"""Flatten a GetHotelDetailsRS payload into table rows."""
from __future__ import annotations

import logging
from typing import Any

from rate_console.models import RatePlanRow, RoomOfferRow
from rate_console.paths import as_text, first_item, first_text, get_at_path, normalize_to_list, to_number

ROOM_PATH = ("GetHotelDetailsRS", "HotelDetailsInfo", "HotelRateInfo", "Rooms", "Room")
RATE_PLAN_PATH = ("RatePlans", "RatePlan")

logger = logging.getLogger(__name__)


def extract_rate_plan_rows(payload: Any) -> list[RatePlanRow]:
    """One row per (room, rate plan) pair, in document order."""
    rows: list[RatePlanRow] = []
    for room_index, room in enumerate(_rooms(payload)):
        plans = _rate_plans(room, room_index)
        if not plans:
            continue

        room_name = as_text(get_at_path(room, ("RoomDescription", "Name")))
        room_type = as_text(get_at_path(room, ("RoomType",))) or room_name
        description = first_text(get_at_path(room, ("RoomDescription", "Text")))

        for plan in plans:
            rate_info = get_at_path(plan, ("ConvertedRateInfo",))
            penalty = first_item(get_at_path(rate_info, ("CancelPenalties", "CancelPenalty")))
            rows.append(
                RatePlanRow(
                    rate_key=as_text(get_at_path(plan, ("RateKey",))),
                    rate_plan_code=as_text(get_at_path(plan, ("RatePlanCode",))),
                    rate_plan_name=as_text(get_at_path(plan, ("RatePlanName",))),
                    room_type=room_type,
                    room_name=room_name,
                    description=description,
                    currency=as_text(get_at_path(rate_info, ("CurrencyCode",))),
                    amount_after_tax=to_number(get_at_path(rate_info, ("AmountAfterTax",))),
                    amount_before_tax=to_number(get_at_path(rate_info, ("AmountBeforeTax",))),
                    taxes=to_number(get_at_path(rate_info, ("Taxes", "Amount"))),
                    fees=to_number(get_at_path(rate_info, ("Fees", "Amount"))),
                    refundable=_refundable(penalty),
                    cancel_offset=_cancel_offset(penalty),
                )
            )
    return rows


def extract_room_offer_rows(payload: Any) -> list[RoomOfferRow]:
    """One row per room, summarising its first rate plan."""
    offers: list[RoomOfferRow] = []
    for room_index, room in enumerate(_rooms(payload)):
        plans = _rate_plans(room, room_index)
        if not plans:
            continue

        plan = plans[0]
        rate_info = get_at_path(plan, ("ConvertedRateInfo",))
        offers.append(
            RoomOfferRow(
                room_type=as_text(get_at_path(room, ("RoomType",))),
                room_view_description=first_text(get_at_path(room, ("RoomViewDescription",))),
                bed_type_description=_bed_type_description(room),
                rate_plan_name=as_text(get_at_path(plan, ("RatePlanName",))),
                rate_plan_code=as_text(get_at_path(plan, ("RatePlanCode",))),
                rate_key=as_text(get_at_path(plan, ("RateKey",))),
                product_code=as_text(get_at_path(plan, ("ProductCode",))),
                amount_after_tax=to_number(get_at_path(rate_info, ("AmountAfterTax",))),
                average_nightly_rate=to_number(get_at_path(rate_info, ("AverageNightlyRate",))),
                currency_code=as_text(get_at_path(rate_info, ("CurrencyCode",))),
                room_name=as_text(get_at_path(room, ("RoomDescription", "Name"))),
                room_text=first_text(get_at_path(room, ("RoomDescription", "Text"))),
            )
        )
    return offers


def _rooms(payload: Any) -> list[Any]:
    return normalize_to_list(get_at_path(payload, ROOM_PATH))


def _rate_plans(room: Any, room_index: int) -> list[Any]:
    plans = normalize_to_list(get_at_path(room, RATE_PLAN_PATH))
    if not plans:
        logger.debug("room_skipped_without_rate_plans", extra={"room_index": room_index})
    return plans


def _bed_type_description(room: Any) -> str:
    bed_types = first_item(get_at_path(room, ("BedTypeOptions", "BedTypes")))
    bed_type = first_item(get_at_path(bed_types, ("BedType",)))
    return as_text(get_at_path(bed_type, ("Description",)))


def _refundable(penalty: Any) -> bool | str | None:
    value = get_at_path(penalty, ("Refundable",))
    return value if isinstance(value, (bool, str)) else None


def _cancel_offset(penalty: Any) -> str:
    parts = [
        get_at_path(penalty, ("OffsetUnitMultiplier",)),
        get_at_path(penalty, ("OffsetTimeUnit",)),
        get_at_path(penalty, ("OffsetDropTime",)),
    ]
    return " ".join(_offset_part(part) for part in parts if part is not None and part != "")


def _offset_part(value: Any) -> str:
    # Multipliers arrive as 2 or 2.0 depending on the hotel.
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)

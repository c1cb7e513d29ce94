from __future__ import annotations

import datetime as dt
from urllib.parse import parse_qsl, urlencode, urlsplit

from rate_console.models import EntityId, RatePlanRow, StayQuery


def compose_room_url(
    base_url: str,
    entity_id: EntityId,
    rate_plan_code: str,
    stay: StayQuery,
    room_code: str | None = None,
) -> str:
    if not rate_plan_code:
        raise ValueError("rate_plan_code is required")

    params: list[tuple[str, str]] = [("sabreId", entity_id.sabre_id)]
    if room_code:
        params.append(("roomCode", room_code))
    params.extend(
        [
            ("ratePlanCode", rate_plan_code),
            ("checkIn", stay.check_in.isoformat()),
            ("checkOut", stay.check_out.isoformat()),
            ("adults", str(stay.adults)),
            ("children", str(stay.children)),
        ]
    )
    delimiter = "&" if "?" in base_url else "?"
    return f"{base_url}{delimiter}{urlencode(params)}"


def compose_from_row(base_url: str, entity_id: EntityId, row: RatePlanRow, stay: StayQuery) -> str:
    return compose_room_url(
        base_url,
        entity_id,
        rate_plan_code=row.rate_plan_code or row.rate_key,
        stay=stay,
        room_code=row.room_name or row.room_type or None,
    )


def parse_room_url(url: str, currency_code: str) -> dict:
    """Inverse of ``compose_room_url``. Links carry no currency, so the caller supplies the one the stay was priced in."""
    query = dict(parse_qsl(urlsplit(url).query, keep_blank_values=True))
    return {
        "sabre_id": query.get("sabreId"),
        "room_code": query.get("roomCode"),
        "rate_plan_code": query.get("ratePlanCode"),
        "stay": StayQuery(
            check_in=dt.date.fromisoformat(query["checkIn"]),
            check_out=dt.date.fromisoformat(query["checkOut"]),
            adults=int(query["adults"]),
            children=int(query["children"]),
            currency_code=currency_code,
        ),
    }

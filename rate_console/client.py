from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from rate_console.config import RATE_API_RETRY_ATTEMPTS, RATE_API_TIMEOUT_SECONDS, RATE_API_URL
from rate_console.errors import UnexpectedResponseFormat, UpstreamError
from rate_console.models import StayQuery

logger = logging.getLogger(__name__)

_TITLE_PATTERN = re.compile(r"<title>(.*?)</title>|<h1>(.*?)</h1>", re.IGNORECASE | re.DOTALL)


def build_hotel_details_request(sabre_id: str, stay: StayQuery, rate_plan_codes: list[str] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "HotelCode": sabre_id,
        "CurrencyCode": stay.currency_code,
        "StartDate": stay.check_in.isoformat(),
        "EndDate": stay.check_out.isoformat(),
        "Adults": stay.adults,
        "Children": stay.children,
    }
    codes = [code for code in (rate_plan_codes or []) if code]
    if codes:
        payload["RatePlanCode"] = codes
        payload["ExactMatchOnly"] = True
    return payload


async def call_hotel_details(
    payload: dict[str, Any],
    url: str = RATE_API_URL,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    headers = {
        "Content-Type": "application/json",
        "Accept": "application/json",
    }

    last_error: Exception | None = None
    for attempt in range(RATE_API_RETRY_ATTEMPTS + 1):
        try:
            async with httpx.AsyncClient(timeout=RATE_API_TIMEOUT_SECONDS, transport=transport) as client:
                response = await client.post(url, json=payload, headers=headers)
        except httpx.RequestError as exc:
            last_error = exc
            logger.warning(
                "rate_fetch_failed",
                extra={"hotel": payload.get("HotelCode"), "attempt": attempt + 1, "error": str(exc)},
            )
            continue

        parsed = parse_hotel_details_response(
            response.text,
            response.headers.get("content-type", ""),
            status_code=response.status_code,
        )
        if response.is_error:
            raise UpstreamError(_upstream_error_message(parsed, response.status_code), status_code=response.status_code)
        return parsed

    logger.error(
        "rate_fetch_exhausted",
        extra={"hotel": payload.get("HotelCode"), "attempts": RATE_API_RETRY_ATTEMPTS + 1, "error": str(last_error)},
    )
    raise UpstreamError(f"Rate API unreachable: {last_error}")


def parse_hotel_details_response(response_text: str, content_type: str = "", status_code: int | None = None) -> dict[str, Any]:
    if _looks_like_html(response_text, content_type):
        title = _html_title(response_text)
        logger.error("rate_fetch_html_response", extra={"status": status_code, "title": title})
        message = "unexpected response format"
        if title:
            message = f"{message}: {title}"
        raise UnexpectedResponseFormat(message, status_code=status_code, snippet=response_text[:200])

    try:
        payload = json.loads(response_text)
    except json.JSONDecodeError as exc:
        raise UnexpectedResponseFormat(
            "unexpected response format",
            status_code=status_code,
            snippet=response_text[:200],
        ) from exc

    if not isinstance(payload, dict):
        raise UnexpectedResponseFormat("unexpected response format", status_code=status_code, snippet=response_text[:200])
    return payload


def _looks_like_html(response_text: str, content_type: str) -> bool:
    if "text/html" in content_type.lower():
        return True
    head = response_text.lstrip()[:15].lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def _html_title(response_text: str) -> str | None:
    match = _TITLE_PATTERN.search(response_text)
    if not match:
        return None
    title = (match.group(1) or match.group(2) or "").strip()
    return title or None


def _upstream_error_message(payload: dict[str, Any], status_code: int) -> str:
    for key in ("error", "message", "detail"):
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return f"Rate API error {status_code}: {value.strip()}"
    return f"Rate API error {status_code}"

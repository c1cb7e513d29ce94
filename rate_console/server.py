from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()

from mcp.server.fastmcp import FastMCP  # noqa: E402
from starlette.requests import Request  # noqa: E402
from starlette.responses import JSONResponse, Response  # noqa: E402

from rate_console.config import RATE_API_URL, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL  # noqa: E402
from rate_console.service import RateConsoleService  # noqa: E402

MCP_HOST = os.getenv("MCP_HOST", "0.0.0.0")
MCP_PORT = int(os.getenv("MCP_PORT", "8000"))
APP_ENV = os.getenv("APP_ENV", "dev")
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

mcp = FastMCP("Rate_Plan_Console", host=MCP_HOST, port=MCP_PORT)
service = RateConsoleService()


@mcp.custom_route("/healthz", methods=["GET"], include_in_schema=False)
async def healthz(_request: Request) -> Response:
    return JSONResponse(
        {
            "status": "ok",
            "service": "rate-plan-console",
            "env": APP_ENV,
            "version": APP_VERSION,
        },
        status_code=200,
    )


@mcp.custom_route("/readyz", methods=["GET"], include_in_schema=False)
async def readyz(_request: Request) -> Response:
    issues: list[str] = []
    if not RATE_API_URL:
        issues.append("RATE_API_URL is not set")
    if not SUPABASE_URL or not SUPABASE_SERVICE_ROLE_KEY:
        issues.append("Supabase is not configured; rate plan codes are kept in memory only")

    if not RATE_API_URL:
        return JSONResponse(
            {
                "status": "not_ready",
                "service": "rate-plan-console",
                "issues": issues,
            },
            status_code=503,
        )

    return JSONResponse(
        {
            "status": "ready",
            "service": "rate-plan-console",
            "rate_api": RATE_API_URL,
            "store": type(service.store).__name__,
            "issues": issues,
        },
        status_code=200,
    )


@mcp.tool()
async def list_rate_plan_codes() -> dict:
    """Rate plan codes an admin may attach to a hotel."""
    return service.list_rate_plan_codes()


@mcp.tool()
async def search_rate_plans(
    sabre_id: str,
    paragon_id: str | None = None,
    check_in: str | None = None,
    check_out: str | None = None,
    adults: int = 2,
    children: int = 0,
    currency_code: str | None = None,
    rate_plan_codes: list[str] | None = None,
) -> dict:
    """Every (room, rate plan) pair for a hotel and stay, cheapest first."""
    return await service.search_rate_plans(
        sabre_id=sabre_id,
        paragon_id=paragon_id,
        check_in=check_in,
        check_out=check_out,
        adults=adults,
        children=children,
        currency_code=currency_code,
        rate_plan_codes=rate_plan_codes,
    )


@mcp.tool()
async def search_room_offers(
    sabre_id: str,
    paragon_id: str | None = None,
    check_in: str | None = None,
    check_out: str | None = None,
    adults: int = 2,
    children: int = 0,
    currency_code: str | None = None,
    rate_plan_codes: list[str] | None = None,
) -> dict:
    """One representative offer per room (bed type, product code, nightly rate)."""
    return await service.search_room_offers(
        sabre_id=sabre_id,
        paragon_id=paragon_id,
        check_in=check_in,
        check_out=check_out,
        adults=adults,
        children=children,
        currency_code=currency_code,
        rate_plan_codes=rate_plan_codes,
    )


@mcp.tool()
async def open_rate_plan_selection(sabre_id: str, paragon_id: str | None = None) -> dict:
    """Load the hotel's saved rate plan codes and start an editable selection."""
    return await service.open_rate_plan_selection(sabre_id=sabre_id, paragon_id=paragon_id)


@mcp.tool()
async def toggle_rate_plan_code(sabre_id: str, code: str, paragon_id: str | None = None) -> dict:
    """Add the code to the selection, or remove it if already selected."""
    return service.toggle_rate_plan_code(sabre_id=sabre_id, code=code, paragon_id=paragon_id)


@mcp.tool()
async def replace_rate_plan_codes(sabre_id: str, codes: list[str], paragon_id: str | None = None) -> dict:
    """Overwrite the whole selection (select all, clear, or apply a suggestion)."""
    return service.replace_rate_plan_codes(sabre_id=sabre_id, codes=codes, paragon_id=paragon_id)


@mcp.tool()
async def save_rate_plan_codes(sabre_id: str, paragon_id: str | None = None) -> dict:
    """Persist the selection. On failure nothing changes and the edits stay pending."""
    return await service.save_rate_plan_codes(sabre_id=sabre_id, paragon_id=paragon_id)


@mcp.tool()
async def close_rate_plan_selection(sabre_id: str, paragon_id: str | None = None) -> dict:
    """Drop the selection without saving."""
    return service.close_rate_plan_selection(sabre_id=sabre_id, paragon_id=paragon_id)


@mcp.tool()
async def generate_room_url(
    sabre_id: str,
    rate_plan_code: str,
    check_in: str | None = None,
    check_out: str | None = None,
    adults: int = 2,
    children: int = 0,
    room_code: str | None = None,
    base_url: str | None = None,
) -> dict:
    """Build a shareable room deep link for a rate plan and stay."""
    return service.generate_room_url(
        sabre_id=sabre_id,
        rate_plan_code=rate_plan_code,
        check_in=check_in,
        check_out=check_out,
        adults=adults,
        children=children,
        room_code=room_code,
        base_url=base_url,
    )


@mcp.tool()
async def generate_room_url_for_rate(
    sabre_id: str,
    rate_key: str,
    paragon_id: str | None = None,
    check_in: str | None = None,
    check_out: str | None = None,
    adults: int = 2,
    children: int = 0,
    currency_code: str | None = None,
    base_url: str | None = None,
) -> dict:
    """Build a room deep link for one row of search_rate_plans, picked by its rate_key."""
    return await service.generate_room_url_for_rate(
        sabre_id=sabre_id,
        rate_key=rate_key,
        paragon_id=paragon_id,
        check_in=check_in,
        check_out=check_out,
        adults=adults,
        children=children,
        currency_code=currency_code,
        base_url=base_url,
    )


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


if __name__ == "__main__":
    configure_logging()
    mcp.run(transport="sse")

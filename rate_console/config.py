from __future__ import annotations

import os

DEFAULT_RATE_PLAN_CODES = (
    "API", "ZP3", "VMC", "TLC", "H01", "S72", "XLO", "PPR",
    "FAN", "WMP", "HPM", "TID", "STP", "BAR", "RAC", "PKG",
    "V8M", "W9E", "CDH", "A72", "L72", "XMH", "PUF",
)

RATE_API_URL = os.getenv(
    "RATE_API_URL",
    "https://sabre-nodejs-9tia3.ondigitalocean.app/public/hotel/sabre/hotel-details",
)
RATE_API_TIMEOUT_SECONDS = float(os.getenv("RATE_API_TIMEOUT_SECONDS", "15"))
RATE_API_RETRY_ATTEMPTS = int(os.getenv("RATE_API_RETRY_ATTEMPTS", "1"))
RATE_API_CURRENCY = os.getenv("RATE_API_CURRENCY", "KRW")

SUPABASE_URL = os.getenv("SUPABASE_URL") or None
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or None
RATE_PLAN_TABLE = os.getenv("RATE_PLAN_TABLE", "select_hotels")

ROOM_URL_BASE = os.getenv("ROOM_URL_BASE", "https://select3-admin.example.com/api/rooms/url")


def allowed_rate_plan_codes() -> list[str]:
    raw = os.getenv("RATE_PLAN_CODES", "")
    codes = [code.strip().upper() for code in raw.split(",") if code.strip()]
    return codes or list(DEFAULT_RATE_PLAN_CODES)

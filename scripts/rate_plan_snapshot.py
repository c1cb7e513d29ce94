from __future__ import annotations

import argparse
import asyncio
import datetime as dt
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rate_console.errors import UpstreamError  # noqa: E402
from rate_console.extractors import extract_rate_plan_rows, extract_room_offer_rows  # noqa: E402
from rate_console.models import StayQuery  # noqa: E402
from rate_console.providers.base import RateProvider  # noqa: E402
from rate_console.providers.sabre import SabreRateProvider  # noqa: E402
from rate_console.ranking import sort_by_price  # noqa: E402


def snapshot_folder_name(sabre_id: str, stay: StayQuery) -> str:
    cleaned = "".join(ch if ch.isalnum() else "_" for ch in sabre_id.strip()).strip("_")
    return f"{cleaned or 'unknown_hotel'}-{stay.check_in.isoformat()}-{stay.check_out.isoformat()}"


def summarize_rows(raw: Any) -> dict[str, Any]:
    rows = sort_by_price(extract_rate_plan_rows(raw))
    offers = extract_room_offer_rows(raw)
    priced = [row.amount_after_tax for row in rows if row.amount_after_tax is not None]
    return {
        "rate_plan_rows": [row.model_dump(mode="json") for row in rows],
        "room_offer_rows": [offer.model_dump(mode="json") for offer in offers],
        "rate_plan_row_count": len(rows),
        "room_offer_row_count": len(offers),
        "unpriced_row_count": len(rows) - len(priced),
        "cheapest_amount_after_tax": min(priced) if priced else None,
    }


async def run_snapshot(
    sabre_id: str,
    stay: StayQuery,
    codes: list[str],
    provider: RateProvider | None = None,
    output_root: Path | None = None,
) -> int:
    base_dir = (output_root or ROOT / "rate_snapshots") / snapshot_folder_name(sabre_id, stay)
    base_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(timezone.utc).isoformat()

    provider = provider or SabreRateProvider()
    try:
        raw = await provider.fetch_hotel_details(sabre_id, stay, codes)
    except UpstreamError as exc:
        (base_dir / "error.json").write_text(
            json.dumps(
                {
                    "captured_at": timestamp,
                    "error": type(exc).__name__,
                    "message": exc.message,
                    "status_code": exc.status_code,
                },
                indent=2,
                ensure_ascii=False,
            )
        )
        print(f"Rate request failed ({type(exc).__name__}): {exc.message}")
        return 1

    request = {"sabre_id": sabre_id, "stay": stay.model_dump(mode="json"), "rate_plan_codes": codes}
    (base_dir / "response.raw.json").write_text(
        json.dumps({"captured_at": timestamp, "request": request, "payload": raw}, indent=2, ensure_ascii=False)
    )
    summary = summarize_rows(raw)
    (base_dir / "rows.json").write_text(
        json.dumps({"captured_at": timestamp, "request": request, **summary}, indent=2, ensure_ascii=False)
    )

    print(f"Rate plan rows: {summary['rate_plan_row_count']} (unpriced: {summary['unpriced_row_count']})")
    print(f"Room offer rows: {summary['room_offer_row_count']}")
    print(f"Wrote rate snapshot to: {base_dir}")
    return 0


def main() -> int:
    load_dotenv()
    today = dt.date.today()
    parser = argparse.ArgumentParser(description="Capture a raw rate response and the rows extracted from it")
    parser.add_argument("sabre_id", help="Sabre hotel code")
    parser.add_argument("--check-in", default=(today + dt.timedelta(days=14)).isoformat())
    parser.add_argument("--check-out", default=None, help="Defaults to the night after check-in")
    parser.add_argument("--adults", type=int, default=2)
    parser.add_argument("--children", type=int, default=0)
    parser.add_argument("--currency", default="KRW")
    parser.add_argument("--codes", default="", help="Comma-separated rate plan codes (ExactMatchOnly)")
    args = parser.parse_args()

    check_in = dt.date.fromisoformat(args.check_in)
    check_out = dt.date.fromisoformat(args.check_out) if args.check_out else check_in + dt.timedelta(days=1)
    stay = StayQuery(
        check_in=check_in,
        check_out=check_out,
        adults=args.adults,
        children=args.children,
        currency_code=args.currency.upper(),
    )
    codes = [code.strip().upper() for code in args.codes.split(",") if code.strip()]
    return asyncio.run(run_snapshot(args.sabre_id, stay, codes))


if __name__ == "__main__":
    raise SystemExit(main())

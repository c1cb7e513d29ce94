import datetime as dt
import unittest
from urllib.parse import parse_qsl, urlsplit

from rate_console.models import EntityId, RatePlanRow, StayQuery
from rate_console.urls import compose_from_row, compose_room_url, parse_room_url

HOTEL = EntityId(sabre_id="312")
STAY = StayQuery(check_in=dt.date(2026, 11, 2), check_out=dt.date(2026, 11, 4), adults=2, children=1)


class ComposeRoomUrlTests(unittest.TestCase):
    def test_delimiter_choice(self):
        plain = compose_room_url("https://x/api", HOTEL, "API", STAY)
        with_query = compose_room_url("https://x/api?a=1", HOTEL, "API", STAY)
        self.assertTrue(plain.startswith("https://x/api?sabreId=312&"))
        self.assertTrue(with_query.startswith("https://x/api?a=1&sabreId=312&"))

    def test_fixed_parameter_order(self):
        url = compose_room_url("https://x/api", HOTEL, "API", STAY, room_code="Deluxe King")
        keys = [key for key, _ in parse_qsl(urlsplit(url).query)]
        self.assertEqual(keys, ["sabreId", "roomCode", "ratePlanCode", "checkIn", "checkOut", "adults", "children"])
        self.assertEqual(url, compose_room_url("https://x/api", HOTEL, "API", STAY, room_code="Deluxe King"))

    def test_room_code_is_optional(self):
        url = compose_room_url("https://x/api", HOTEL, "API", STAY)
        self.assertNotIn("roomCode", url)
        self.assertEqual(
            url,
            "https://x/api?sabreId=312&ratePlanCode=API&checkIn=2026-11-02&checkOut=2026-11-04&adults=2&children=1",
        )

    def test_values_are_encoded(self):
        url = compose_room_url("https://x/api", HOTEL, "A&B", STAY, room_code="King / City")
        self.assertIn("ratePlanCode=A%26B", url)
        self.assertIn("roomCode=King+%2F+City", url)

    def test_rate_plan_code_required(self):
        with self.assertRaises(ValueError):
            compose_room_url("https://x/api", HOTEL, "", STAY)

    def test_round_trip(self):
        url = compose_room_url("https://x/api?a=1", HOTEL, "ZP3", STAY, room_code="Twin & Co")
        parsed = parse_room_url(url, currency_code=STAY.currency_code)
        self.assertEqual(parsed["sabre_id"], "312")
        self.assertEqual(parsed["rate_plan_code"], "ZP3")
        self.assertEqual(parsed["room_code"], "Twin & Co")
        self.assertEqual(parsed["stay"], STAY)

    def test_round_trip_keeps_stay_currency(self):
        stay = StayQuery(check_in=dt.date(2026, 12, 24), check_out=dt.date(2026, 12, 27), adults=1, currency_code="USD")
        url = compose_room_url("https://x/api", HOTEL, "BAR", stay)
        parsed = parse_room_url(url, currency_code=stay.currency_code)
        self.assertEqual(parsed["stay"], stay)
        self.assertEqual(parsed["stay"].currency_code, "USD")
        self.assertNotIn("KRW", url)

    def test_compose_from_row_falls_back_to_rate_key(self):
        row = RatePlanRow(rate_key="KEY-1", room_type="KNG")
        parsed = parse_room_url(compose_from_row("https://x/api", HOTEL, row, STAY), currency_code="KRW")
        self.assertEqual(parsed["rate_plan_code"], "KEY-1")
        self.assertEqual(parsed["room_code"], "KNG")


if __name__ == "__main__":
    unittest.main()

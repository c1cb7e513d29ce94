import unittest

from rate_console.models import RatePlanRow, RoomOfferRow
from rate_console.ranking import sort_by_price


class SortByPriceTests(unittest.TestCase):
    def test_unpriced_rows_sort_last(self):
        rows = [RatePlanRow(rate_key="empty"), RatePlanRow(rate_key="priced", amount_after_tax=100)]
        ordered = sort_by_price(rows)
        self.assertEqual([row.rate_key for row in ordered], ["priced", "empty"])

    def test_ties_keep_input_order(self):
        rows = [
            RatePlanRow(rate_key="a", amount_after_tax=200),
            RatePlanRow(rate_key="b", amount_after_tax=100),
            RatePlanRow(rate_key="c", amount_after_tax=200),
            RatePlanRow(rate_key="d"),
            RatePlanRow(rate_key="e", amount_after_tax=100),
            RatePlanRow(rate_key="f"),
        ]
        ordered = sort_by_price(rows)
        self.assertEqual([row.rate_key for row in ordered], ["b", "e", "a", "c", "d", "f"])
        self.assertEqual(sort_by_price(rows), ordered)

    def test_ascending_with_empty_suffix(self):
        prices = [5.0, None, 0.0, 3.5, None, 12.0, 3.5]
        ordered = sort_by_price([RatePlanRow(amount_after_tax=price) for price in prices])
        values = [row.amount_after_tax for row in ordered]
        priced = [value for value in values if value is not None]
        self.assertEqual(values[: len(priced)], sorted(priced))
        self.assertTrue(all(value is None for value in values[len(priced):]))
        self.assertEqual(values[0], 0.0)

    def test_does_not_modify_input(self):
        rows = [RatePlanRow(rate_key="x", amount_after_tax=2), RatePlanRow(rate_key="y", amount_after_tax=1)]
        sort_by_price(rows)
        self.assertEqual([row.rate_key for row in rows], ["x", "y"])

    def test_room_offers(self):
        offers = [RoomOfferRow(rate_plan_code="A"), RoomOfferRow(rate_plan_code="B", amount_after_tax=1)]
        self.assertEqual([offer.rate_plan_code for offer in sort_by_price(offers)], ["B", "A"])


if __name__ == "__main__":
    unittest.main()

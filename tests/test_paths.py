import unittest

from rate_console.paths import first_text, get_at_path, normalize_to_list, to_number


class GetAtPathTests(unittest.TestCase):
    def test_walks_nested_objects(self):
        node = {"a": {"b": {"c": 5}}}
        self.assertEqual(get_at_path(node, ["a", "b", "c"]), 5)

    def test_missing_key_short_circuits(self):
        self.assertIsNone(get_at_path({"a": {}}, ["a", "b", "c"]))

    def test_does_not_unwrap_lists(self):
        node = {"Rooms": {"Room": [{"RoomType": "KNG"}]}}
        self.assertIsNone(get_at_path(node, ["Rooms", "Room", "RoomType"]))
        self.assertEqual(get_at_path(node, ["Rooms", "Room"]), [{"RoomType": "KNG"}])

    def test_non_object_input_returns_none(self):
        self.assertIsNone(get_at_path("<html>", ["GetHotelDetailsRS"]))
        self.assertIsNone(get_at_path(None, ["a"]))

    def test_empty_path_returns_node(self):
        node = {"a": 1}
        self.assertIs(get_at_path(node, []), node)


class NormalizeToListTests(unittest.TestCase):
    def test_shapes(self):
        self.assertEqual(normalize_to_list(None), [])
        self.assertEqual(normalize_to_list({"a": 1}), [{"a": 1}])
        items = [{"a": 1}, {"a": 2}]
        self.assertIs(normalize_to_list(items), items)


class ToNumberTests(unittest.TestCase):
    def test_numeric_values(self):
        self.assertEqual(to_number("1200.50"), 1200.5)
        self.assertEqual(to_number(" 42 "), 42.0)
        self.assertEqual(to_number(7), 7.0)

    def test_zero_is_kept(self):
        self.assertEqual(to_number(0), 0.0)
        self.assertEqual(to_number("0"), 0.0)

    def test_non_numeric_values_become_empty(self):
        for value in (None, "", "   ", "n/a", "1,200", True, float("nan"), "inf", {"Amount": 1}, []):
            with self.subTest(value=value):
                self.assertIsNone(to_number(value))


class FirstTextTests(unittest.TestCase):
    def test_list_and_scalar(self):
        self.assertEqual(first_text(["first", "second"]), "first")
        self.assertEqual(first_text("only"), "only")
        self.assertEqual(first_text([]), "")
        self.assertEqual(first_text([{"Text": "x"}]), "")
        self.assertEqual(first_text(None), "")


if __name__ == "__main__":
    unittest.main()

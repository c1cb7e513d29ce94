import unittest

from rate_console.errors import StoreError
from rate_console.models import EntityId
from rate_console.selection import SelectionReconciler, clean_rate_plan_codes, parse_rate_plan_codes
from rate_console.stores.memory import InMemoryRatePlanCodeStore

HOTEL = EntityId(sabre_id="312", paragon_id="P-1")


class FailingStore:
    def __init__(self):
        self.writes = 0

    async def read(self, entity_id):
        return []

    async def write(self, entity_id, codes):
        self.writes += 1
        raise StoreError("database unavailable", status_code=503)


class SelectionReconcilerTests(unittest.IsolatedAsyncioTestCase):
    def _panel(self, store=None, persisted=("API", "ZP3")):
        panel = SelectionReconciler(store or InMemoryRatePlanCodeStore())
        panel.initialize(HOTEL, list(persisted))
        return panel

    def test_initialize_copies_baseline(self):
        panel = self._panel()
        self.assertEqual(panel.baseline, frozenset({"API", "ZP3"}))
        self.assertEqual(panel.working, panel.baseline)
        self.assertFalse(panel.is_dirty)

    def test_toggle_twice_is_identity(self):
        panel = self._panel()
        for code in ("VMC", "API"):
            with self.subTest(code=code):
                before = panel.working
                panel.toggle(code)
                self.assertNotEqual(panel.working, before)
                panel.toggle(code)
                self.assertEqual(panel.working, before)

    def test_toggle_cleans_code(self):
        panel = self._panel(persisted=())
        panel.toggle(' "vmc"] ')
        self.assertEqual(panel.working, frozenset({"VMC"}))
        with self.assertRaises(ValueError):
            panel.toggle("  ")

    def test_diffs(self):
        panel = self._panel()
        panel.toggle("ZP3")
        panel.toggle("TLC")
        self.assertEqual(panel.added(), ["TLC"])
        self.assertEqual(panel.removed(), ["ZP3"])
        self.assertTrue(panel.is_dirty)
        self.assertEqual(panel.baseline, frozenset({"API", "ZP3"}))

    def test_replace_all_overwrites_working_only(self):
        panel = self._panel()
        panel.replace_all(["tlc", "H01", "TLC"])
        self.assertEqual(panel.working_codes, ["TLC", "H01"])
        self.assertEqual(panel.baseline, frozenset({"API", "ZP3"}))

    def test_reinitialize_discards_edits(self):
        panel = self._panel()
        panel.toggle("VMC")
        panel.initialize(HOTEL, ["API", "ZP3"])
        self.assertEqual(panel.working, frozenset({"API", "ZP3"}))
        self.assertFalse(panel.is_dirty)

    async def test_save_round_trip(self):
        store = InMemoryRatePlanCodeStore({HOTEL: ["API", "ZP3"]})
        panel = SelectionReconciler(store)
        panel.initialize(HOTEL, await store.read(HOTEL))
        panel.toggle("TLC")
        await panel.save()
        self.assertEqual(panel.baseline, panel.working)

        panel.initialize(HOTEL, await store.read(HOTEL))
        self.assertEqual(panel.working, frozenset({"API", "ZP3"}) ^ {"TLC"})

    async def test_save_removal_round_trip(self):
        store = InMemoryRatePlanCodeStore({HOTEL: ["API", "ZP3"]})
        panel = SelectionReconciler(store)
        panel.initialize(HOTEL, await store.read(HOTEL))
        panel.toggle("API")
        await panel.save()
        self.assertEqual(await store.read(HOTEL), ["ZP3"])

    async def test_failed_save_leaves_state_untouched(self):
        store = FailingStore()
        panel = self._panel(store=store)
        panel.toggle("VMC")
        working_before = panel.working_codes

        with self.assertRaises(StoreError):
            await panel.save()

        self.assertEqual(store.writes, 1)
        self.assertEqual(panel.working_codes, working_before)
        self.assertEqual(panel.baseline, frozenset({"API", "ZP3"}))
        self.assertTrue(panel.is_dirty)

    async def test_save_without_changes_skips_store(self):
        store = FailingStore()
        panel = self._panel(store=store)
        await panel.save()
        self.assertEqual(store.writes, 0)

    async def test_save_requires_initialize(self):
        panel = SelectionReconciler(InMemoryRatePlanCodeStore())
        with self.assertRaises(RuntimeError):
            await panel.save()

    def test_display_marks_persisted_codes_regardless_of_selection(self):
        panel = self._panel()
        panel.toggle("API")
        panel.toggle("VMC")
        display = {item.code: item for item in panel.display(["API", "ZP3", "VMC", "TLC"])}
        self.assertTrue(display["API"].persisted)
        self.assertFalse(display["API"].selected)
        self.assertTrue(display["VMC"].selected)
        self.assertFalse(display["VMC"].persisted)
        self.assertFalse(display["TLC"].selected)
        self.assertEqual(panel.working, frozenset({"ZP3", "VMC"}))

    def test_display_includes_persisted_codes_outside_catalog(self):
        panel = self._panel(persisted=("OLD",))
        codes = [item.code for item in panel.display(["API"])]
        self.assertEqual(codes, ["API", "OLD"])


class RatePlanCodeHelpersTests(unittest.TestCase):
    def test_parse_stored_column(self):
        self.assertEqual(parse_rate_plan_codes("API, zp3,,API"), ["API", "ZP3"])
        self.assertEqual(parse_rate_plan_codes(["API", "VMC"]), ["API", "VMC"])
        self.assertEqual(parse_rate_plan_codes(None), [])

    def test_clean_against_allowed_codes(self):
        cleaned, errors = clean_rate_plan_codes(['["API"', "zp3", "XYZ", 5, "", "API"], ["API", "ZP3"])
        self.assertEqual(cleaned, ["API", "ZP3"])
        self.assertEqual(errors, ["Invalid rate plan code: XYZ", "Invalid code type: int"])


if __name__ == "__main__":
    unittest.main()

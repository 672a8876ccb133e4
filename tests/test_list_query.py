import os
import unittest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from app.core.config import settings
from app.schemas.queries import ListQuery, ShowQuery, normalize_filters


class ListQueryTests(unittest.TestCase):
    def test_defaults(self):
        query = ListQuery.from_params({})
        self.assertIsNone(query.q)
        self.assertEqual(query.page, 1)
        self.assertEqual(query.per_page, settings.LIST_DEFAULT_PER_PAGE)
        self.assertIsNone(query.sort)
        self.assertEqual(query.dir, "desc")
        self.assertEqual(query.filters, {})

    def test_per_page_is_clamped_and_page_floor_is_one(self):
        query = ListQuery.from_params({"per_page": "5000", "page": "-3"})
        self.assertEqual(query.per_page, settings.LIST_MAX_PER_PAGE)
        self.assertEqual(query.page, 1)

        query = ListQuery.from_params({"per_page": "0"})
        self.assertEqual(query.per_page, settings.LIST_DEFAULT_PER_PAGE)

        query = ListQuery.from_params({"per_page": "abc", "page": "x"})
        self.assertEqual(query.per_page, settings.LIST_DEFAULT_PER_PAGE)
        self.assertEqual(query.page, 1)

    def test_direction_normalizes_to_desc(self):
        self.assertEqual(ListQuery.from_params({"dir": "ASC"}).dir, "asc")
        self.assertEqual(ListQuery.from_params({"dir": "sideways"}).dir, "desc")

    def test_blank_search_becomes_none(self):
        self.assertIsNone(ListQuery.from_params({"q": "   "}).q)
        self.assertEqual(ListQuery.from_params({"q": "  mercantil "}).q, "mercantil")

    def test_is_immutable(self):
        query = ListQuery.from_params({})
        with self.assertRaises(Exception):
            query.page = 3

    def test_with_filters_returns_new_instance(self):
        query = ListQuery.from_params({"filters": {"is_active": "1"}})
        merged = query.with_filters(code="BAN")
        self.assertEqual(query.filters, {"is_active": True})
        self.assertEqual(merged.filters, {"is_active": True, "code": "BAN"})

    def test_offset(self):
        self.assertEqual(ListQuery.from_params({"page": 3, "per_page": 10}).offset, 20)


class NormalizeFiltersTests(unittest.TestCase):
    def test_drops_empty_values(self):
        self.assertEqual(normalize_filters({"a": None, "b": "", "c": "  ", "d": [], "e": {}}), {})

    def test_boolean_literals(self):
        out = normalize_filters({"a": "true", "b": "FALSE", "c": "1", "d": "0", "e": "yes"})
        self.assertEqual(out, {"a": True, "b": False, "c": True, "d": False, "e": "yes"})

    def test_lists_lose_blank_members(self):
        self.assertEqual(normalize_filters({"status": ["a", "", None, " b "]}), {"status": ["a", "b"]})
        self.assertEqual(normalize_filters({"status": ["", None]}), {})

    def test_range_keeps_present_ends(self):
        self.assertEqual(normalize_filters({"created": {"from": "2024-01-01", "to": ""}}), {"created": {"from": "2024-01-01"}})
        self.assertEqual(normalize_filters({"created": {"from": None, "to": None}}), {})

    def test_range_swaps_inverted_dates_and_numbers(self):
        out = normalize_filters({"created": {"from": "2024-05-01", "to": "2024-01-01"}, "amount": {"from": 50, "to": "10"}})
        self.assertEqual(out["created"], {"from": "2024-01-01", "to": "2024-05-01"})
        self.assertEqual(out["amount"], {"from": "10", "to": 50})

    def test_range_of_mixed_kinds_is_left_alone(self):
        out = normalize_filters({"x": {"from": "2024-05-01", "to": "10"}})
        self.assertEqual(out["x"], {"from": "2024-05-01", "to": "10"})

    def test_unknown_keys_are_preserved(self):
        self.assertEqual(normalize_filters({"anything_goes": "value"}), {"anything_goes": "value"})


class ShowQueryTests(unittest.TestCase):
    def test_from_params_and_predicates(self):
        query = ShowQuery.from_params({"with": ["roles", "roles", " "], "withCount": "roles,permissions", "withTrashed": "1"})
        self.assertEqual(query.with_, ["roles"])
        self.assertEqual(query.with_count, ["roles", "permissions"])
        self.assertTrue(query.with_trashed)
        self.assertTrue(query.has_relations())
        self.assertTrue(query.has_counts())
        self.assertFalse(query.has_appends())

    def test_to_dict_uses_wire_names(self):
        query = ShowQuery.from_params({"append": ["full_phone"]})
        self.assertEqual(
            query.to_dict(),
            {"with": [], "withCount": [], "append": ["full_phone"], "withTrashed": False},
        )

    def test_empty(self):
        query = ShowQuery.from_params(None)
        self.assertFalse(query.has_relations() or query.has_counts() or query.has_appends())
        self.assertFalse(query.with_trashed)


if __name__ == "__main__":
    unittest.main()

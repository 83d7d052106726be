import itertools
import unittest

from storyshelf.services.query_errors import (
    INVALID_SORT_DIRECTION,
    INVALID_SORT_FIELD,
    QueryValidationError,
)
from storyshelf.services.query_source import SortKey
from storyshelf.services.sorting import (
    SortMapping,
    SortMappingProvider,
    SortMappingTable,
    find_invalid_sort_fields,
    parse_sort_expression,
    resolve_sort_keys,
    validate_sort,
)


def _tag_table() -> SortMappingTable:
    return SortMappingTable(
        [
            SortMapping("category"),
            SortMapping("value"),
            SortMapping("usage", "story_count", reverse=True),
            SortMapping("createdAt", "created_at"),
        ],
        default="category",
        tiebreaker="tag_id",
    )


class SortExpressionParsingTests(unittest.TestCase):
    def test_tokens_are_trimmed_and_blank_entries_skipped(self):
        terms = parse_sort_expression(" value desc , ,category ")
        self.assertEqual([(t.field, t.direction) for t in terms], [("value", "desc"), ("category", None)])

    def test_empty_expression_has_no_terms(self):
        self.assertEqual(parse_sort_expression(None), [])
        self.assertEqual(parse_sort_expression("  "), [])


class SortValidationTests(unittest.TestCase):
    def setUp(self):
        self.table = _tag_table()

    def test_known_fields_are_case_insensitive(self):
        self.assertEqual(validate_sort(self.table, "CATEGORY, createdat desc, Usage"), [])

    def test_empty_sort_is_valid(self):
        self.assertEqual(validate_sort(self.table, None), [])
        self.assertEqual(validate_sort(self.table, ""), [])

    def test_every_unknown_field_is_reported(self):
        errors = validate_sort(self.table, "bogus, value, nope desc")
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].code, INVALID_SORT_FIELD)
        self.assertEqual(set(errors[0].fields), {"bogus", "nope"})
        self.assertIn("bogus", errors[0].description)

    def test_invalid_field_set_does_not_depend_on_order(self):
        tokens = ["alpha", "value", "beta desc", "gamma"]
        expected = {"alpha", "beta", "gamma"}
        for perm in itertools.permutations(tokens):
            with self.subTest(order=perm):
                self.assertEqual(set(find_invalid_sort_fields(self.table, ",".join(perm))), expected)

    def test_unknown_direction_is_reported(self):
        errors = validate_sort(self.table, "value sideways")
        self.assertEqual([e.code for e in errors], [INVALID_SORT_DIRECTION])

    def test_bogus_field_named_in_error(self):
        with self.assertRaises(QueryValidationError) as ctx:
            resolve_sort_keys(self.table, "bogus")
        self.assertEqual(ctx.exception.codes, (INVALID_SORT_FIELD,))
        self.assertEqual(ctx.exception.errors[0].fields, ("bogus",))


class SortResolutionTests(unittest.TestCase):
    def setUp(self):
        self.table = _tag_table()

    def test_empty_sort_uses_default_plus_tiebreaker(self):
        self.assertEqual(
            resolve_sort_keys(self.table, None),
            [SortKey("category", False), SortKey("tag_id", False)],
        )

    def test_separator_only_sort_uses_default(self):
        for sort in ("", "   ", ",", " , ", ",,"):
            with self.subTest(sort=sort):
                self.assertEqual(
                    resolve_sort_keys(self.table, sort),
                    [SortKey("category", False), SortKey("tag_id", False)],
                )

    def test_reverse_flag_inverts_direction(self):
        self.assertEqual(resolve_sort_keys(self.table, "usage")[0], SortKey("story_count", True))
        self.assertEqual(resolve_sort_keys(self.table, "usage desc")[0], SortKey("story_count", False))

    def test_storage_path_and_direction_are_mapped(self):
        self.assertEqual(
            resolve_sort_keys(self.table, "createdAt desc, value"),
            [SortKey("created_at", True), SortKey("value", False), SortKey("tag_id", False)],
        )

    def test_repeated_field_keeps_first_direction(self):
        keys = resolve_sort_keys(self.table, "value desc, value asc")
        self.assertEqual(keys[:1], [SortKey("value", True)])
        self.assertEqual(len(keys), 2)

    def test_invalid_default_is_rejected_at_definition(self):
        with self.assertRaises(ValueError):
            SortMappingTable([SortMapping("name")], default="missing")


class SortMappingProviderTests(unittest.TestCase):
    def test_registered_table_is_returned(self):
        provider = SortMappingProvider()
        table = provider.register("tags", _tag_table())
        self.assertIs(provider.get("tags"), table)

    def test_missing_table_fails_loudly(self):
        with self.assertRaises(LookupError):
            SortMappingProvider().get("unknown")

    def test_duplicate_registration_is_rejected(self):
        provider = SortMappingProvider()
        provider.register("tags", _tag_table())
        with self.assertRaises(ValueError):
            provider.register("tags", _tag_table())


if __name__ == "__main__":
    unittest.main()

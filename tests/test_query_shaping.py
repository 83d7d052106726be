import unittest
from types import SimpleNamespace

from storyshelf.services.query_errors import INVALID_SHAPE_FIELD, QueryValidationError
from storyshelf.services.shaping import FieldProjection, find_invalid_fields, parse_field_list, shape_data


class ShapeDataTests(unittest.TestCase):
    def setUp(self):
        self.item = {"tag_id": "t1", "category": "genre", "value": "fantasy", "story_count": 3}

    def test_no_allow_list_returns_everything(self):
        self.assertEqual(shape_data(self.item, None), self.item)
        self.assertEqual(shape_data(self.item, " , "), self.item)

    def test_allow_list_order_is_preserved(self):
        shaped = shape_data(self.item, "value,tag_id")
        self.assertEqual(list(shaped.items()), [("value", "fantasy"), ("tag_id", "t1")])

    def test_names_are_case_insensitive_and_canonicalised(self):
        self.assertEqual(shape_data(self.item, "VALUE, Story_Count"), {"value": "fantasy", "story_count": 3})

    def test_shaping_by_all_own_fields_is_identity(self):
        self.assertEqual(shape_data(self.item, ",".join(self.item)), self.item)

    def test_unknown_fields_raise(self):
        with self.assertRaises(QueryValidationError) as ctx:
            shape_data(self.item, "value,bogus,nope")
        error = ctx.exception.error_for(INVALID_SHAPE_FIELD)
        self.assertIsNotNone(error)
        self.assertEqual(error.fields, ("bogus", "nope"))

    def test_duplicates_collapse(self):
        self.assertEqual(parse_field_list("value, Value,category"), ["value", "category"])
        self.assertEqual(shape_data(self.item, "value,VALUE"), {"value": "fantasy"})


class FieldProjectionTests(unittest.TestCase):
    def setUp(self):
        self.projection = FieldProjection(
            {
                "id": lambda row: str(row.id),
                "name": "name",
                "owner_name": "owner.name",
            }
        )

    def test_project_uses_declared_order(self):
        row = SimpleNamespace(id=7, name="Le Guin", owner=SimpleNamespace(name="Ursula"))
        projected = self.projection.project(row)
        self.assertEqual(list(projected), ["id", "name", "owner_name"])
        self.assertEqual(projected, {"id": "7", "name": "Le Guin", "owner_name": "Ursula"})

    def test_validate_reports_unknown_names(self):
        self.assertEqual(self.projection.validate("name,ID"), [])
        errors = self.projection.validate("name,bio")
        self.assertEqual([e.code for e in errors], [INVALID_SHAPE_FIELD])
        self.assertEqual(errors[0].fields, ("bio",))

    def test_find_invalid_fields_against_known_set(self):
        self.assertEqual(find_invalid_fields(["a", "b"], "A,c,B,d"), ("c", "d"))

    def test_empty_projection_rejected(self):
        with self.assertRaises(ValueError):
            FieldProjection({})


if __name__ == "__main__":
    unittest.main()

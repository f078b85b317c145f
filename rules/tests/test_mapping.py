from django.test import TestCase

from rules.mapping import RuleColumn, RuleRecord, map_json_objects, map_rows, map_table


class MapRowsTests(TestCase):
    def test_recognized_columns_are_mapped_by_position(self):
        result = map_rows(["title", "description", "skill"], [["Be kind", "Kindness matters", "Empathy"]])
        self.assertEqual(len(result.records), 1)
        rec = result.records[0]
        self.assertEqual(rec.title, "Be kind")
        self.assertEqual(rec.description, "Kindness matters")
        self.assertEqual(rec.skill, "Empathy")
        self.assertEqual(rec.area, "")
        self.assertEqual(rec.discipline, "")

    def test_row_without_title_is_discarded(self):
        result = map_rows(["title", "description"], [["", "Some text"], ["T", "D"]])
        self.assertEqual([r.title for r in result.records], ["T"])
        self.assertEqual(result.discarded_count, 1)
        self.assertEqual(result.discarded[0].row_number, 2)
        self.assertEqual(result.discarded[0].reason, "missing title")

    def test_row_without_description_is_discarded(self):
        result = map_rows(["title", "description"], [["T"]])
        self.assertEqual(result.records, [])
        self.assertEqual(result.discarded[0].reason, "missing description")

    def test_unknown_headers_are_ignored(self):
        result = map_rows(["notes", "title", "x", "description"], [["n", "T", "?", "D"]])
        self.assertEqual(result.records[0], RuleRecord(title="T", description="D"))

    def test_headers_match_exactly_only(self):
        self.assertEqual(RuleColumn.from_header(" Title "), RuleColumn.TITLE)
        self.assertIsNone(RuleColumn.from_header("titles"))
        self.assertIsNone(RuleColumn.from_header("rule title"))

    def test_map_table_lowercases_header(self):
        result = map_table([["TITLE", "Description", "Area"], ["T", "D", "people; self"]])
        self.assertEqual(len(result.records), 1)
        self.assertEqual(result.records[0].area, "people; self")

    def test_map_table_header_only(self):
        result = map_table([["title", "description"]])
        self.assertEqual(result.records, [])
        self.assertEqual(result.discarded_count, 0)


class RuleRecordTests(TestCase):
    def test_to_row_canonicalizes_facets(self):
        rec = RuleRecord(title="T", description="D", area="people;Business, unknown", discipline="will", skill="work ethic")
        row = rec.to_row()
        self.assertEqual(row["area"], ["People", "Business", "unknown"])
        self.assertEqual(row["discipline"], "Will")
        self.assertEqual(row["skill"], "Work ethic")

    def test_empty_area_is_empty_list(self):
        self.assertEqual(RuleRecord(title="T", description="D").to_row()["area"], [])


class MapJsonObjectsTests(TestCase):
    def test_aliases_are_case_insensitive(self):
        result = map_json_objects([
            {"Title": "A", "DESCRIPTION": "a"},
            {"TITLE": "B", "Desc": "b", "Areas": ["People", "Self"]},
            {"rule title": "C", "details": "c"},
        ])
        self.assertEqual([r.title for r in result.records], ["A", "B", "C"])
        self.assertEqual(result.records[1].area, "People;Self")

    def test_values_are_coerced_and_trimmed(self):
        result = map_json_objects([{"title": 42.0, "description": True, "skill": "  Leadership  "}])
        rec = result.records[0]
        self.assertEqual(rec.title, "42")
        self.assertEqual(rec.description, "true")
        self.assertEqual(rec.skill, "Leadership")

    def test_incomplete_and_non_objects_are_discarded(self):
        result = map_json_objects([{"title": "A"}, "nope", {"title": " ", "description": "x"}, {"title": "B", "description": "b"}])
        self.assertEqual([r.title for r in result.records], ["B"])
        self.assertEqual(result.discarded_count, 3)
        self.assertEqual(result.discarded[1].reason, "not an object")

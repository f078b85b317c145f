from django.test import TestCase

from rules.filters import filter_rules

RULES = [
    {"id": 1, "title": "Be kind", "description": "Kindness matters", "area": ["People"], "discipline": "Will", "skill": "Empathy"},
    {"id": 2, "title": "Plan ahead", "description": "Think before acting", "area": ["Self", "Business"], "discipline": "Perception", "skill": "Self-management"},
    {"id": 3, "title": "Ship it", "description": "Done beats perfect", "area": "Business", "discipline": "Action", "skill": ""},
]


class FilterRulesTests(TestCase):
    def ids(self, **criteria):
        return [r["id"] for r in filter_rules(RULES, **criteria)]

    def test_no_criteria_matches_all(self):
        self.assertEqual(self.ids(), [1, 2, 3])

    def test_all_selections_match_everything(self):
        self.assertEqual(self.ids(area="All Areas", discipline="All Disciplines", skill="All Skills"), [1, 2, 3])

    def test_free_text_matches_title_or_description(self):
        self.assertEqual(self.ids(q="KIND"), [1])
        self.assertEqual(self.ids(q="before"), [2])

    def test_area_tag_membership(self):
        self.assertEqual(self.ids(area="business"), [2, 3])

    def test_discipline_and_skill(self):
        self.assertEqual(self.ids(discipline="will"), [1])
        self.assertEqual(self.ids(skill="Self-management"), [2])

    def test_criteria_combine(self):
        self.assertEqual(self.ids(area="Business", discipline="Action"), [3])

    def test_delimited_area_strings(self):
        rows = [
            {"id": 4, "title": "Stay curious", "area": "Self, Business"},
            {"id": 5, "title": "Listen first", "area": "People;Self"},
        ]
        self.assertEqual([r["id"] for r in filter_rules(rows, area="business")], [4])
        self.assertEqual([r["id"] for r in filter_rules(rows, area="self")], [4, 5])

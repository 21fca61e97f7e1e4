import os
import sys
import unittest
from datetime import datetime, timedelta, timezone

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from healthjournal.backend.app import symptom_engine
from healthjournal.backend.app.checkins import CheckIn

BASE = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_checkins(symptom_maps):
    return [
        CheckIn(user_id="u1", timestamp=BASE + timedelta(hours=index), symptoms=symptoms)
        for index, symptoms in enumerate(symptom_maps)
    ]


class SymptomAnalysisTests(unittest.TestCase):
    def test_empty_history(self):
        self.assertEqual(symptom_engine.analyze_symptoms([]), {"symptoms": [], "totalCheckins": 0})

    def test_half_of_checkins_without_symptoms(self):
        maps = [{"pain_level": 5}] * 5 + [None, None, None, {}, {}]
        result = symptom_engine.analyze_symptoms(make_checkins(maps))
        self.assertEqual(result["totalCheckins"], 10)
        self.assertEqual(len(result["symptoms"]), 1)
        stat = result["symptoms"][0]
        self.assertEqual(stat["name"], "pain_level")
        self.assertEqual(stat["count"], 5)
        self.assertEqual(stat["percentage"], 50.0)
        self.assertEqual(stat["type"], "numeric")
        self.assertEqual(stat["min"], 5)
        self.assertEqual(stat["max"], 5)
        self.assertEqual(stat["average"], 5)

    def test_numeric_stats_read_canonical_values(self):
        maps = [{"headache": 2}, {"headache": {"severity": 7}}, {"headache": 4}]
        stat = symptom_engine.analyze_symptoms(make_checkins(maps))["symptoms"][0]
        self.assertEqual(stat["type"], "numeric")
        self.assertEqual((stat["min"], stat["max"], stat["average"]), (2, 7, 4.33))

    def test_ties_keep_first_seen_order(self):
        maps = [
            {"a": 1, "b": 1},
            {"b": 1, "c": 1},
            {"b": 2, "a": 2, "c": 3},
        ]
        names = [item["name"] for item in symptom_engine.analyze_symptoms(make_checkins(maps))["symptoms"]]
        self.assertEqual(names, ["b", "a", "c"])

    def test_categorical_values_are_distinct(self):
        maps = [{"mood": "bad"}, {"mood": "good"}, {"mood": "bad"}, {"mood": None}]
        stat = symptom_engine.analyze_symptoms(make_checkins(maps))["symptoms"][0]
        self.assertEqual(stat["type"], "categorical")
        self.assertEqual(stat["values"], ["bad", "good"])
        self.assertEqual(stat["count"], 4)
        self.assertEqual(stat["percentage"], 100.0)

    def test_boolean_symptoms_have_no_numeric_fields(self):
        maps = [{"nausea": True}, {"nausea": False}, {}]
        stat = symptom_engine.analyze_symptoms(make_checkins(maps))["symptoms"][0]
        self.assertEqual(stat["type"], "boolean")
        self.assertNotIn("min", stat)
        self.assertNotIn("values", stat)
        self.assertEqual(stat["percentage"], 66.7)

    def test_percentage_bounds(self):
        maps = [{"a": 1, "b": True}, {"a": 2}, {"a": 3, "c": "ok"}, None]
        result = symptom_engine.analyze_symptoms(make_checkins(maps))
        for stat in result["symptoms"]:
            self.assertGreaterEqual(stat["percentage"], 0)
            self.assertLessEqual(stat["percentage"], 100)
            self.assertLess(stat["percentage"], 100)

        everywhere = symptom_engine.analyze_symptoms(make_checkins([{"a": 1}, {"a": 2}]))
        self.assertEqual(everywhere["symptoms"][0]["percentage"], 100.0)

    def test_percentage_rounds_halves_up(self):
        maps = [{"rash": 3}] + [None] * 15
        stat = symptom_engine.analyze_symptoms(make_checkins(maps))["symptoms"][0]
        self.assertEqual(stat["percentage"], 6.3)

    def test_repeated_calls_match(self):
        checkins = make_checkins([{"a": 1, "mood": "bad"}, {"a": {"severity": 3}}, None])
        self.assertEqual(symptom_engine.analyze_symptoms(checkins), symptom_engine.analyze_symptoms(checkins))


if __name__ == "__main__":
    unittest.main()

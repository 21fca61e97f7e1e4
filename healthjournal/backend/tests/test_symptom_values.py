import os
import sys
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from healthjournal.backend.app import symptom_values
from healthjournal.backend.app.symptom_values import CanonicalSymptom


class NormalizeSymptomValueTests(unittest.TestCase):
    def test_numeric_is_clamped(self):
        self.assertEqual(symptom_values.normalize_symptom_value(12).severity, 10)
        self.assertEqual(symptom_values.normalize_symptom_value(0).severity, 1)
        self.assertEqual(symptom_values.normalize_symptom_value(4.5).severity, 4.5)

    def test_boolean_maps_to_fixed_severities(self):
        self.assertEqual(symptom_values.normalize_symptom_value(True).severity, 7)
        self.assertEqual(symptom_values.normalize_symptom_value(False).severity, 1)

    def test_categorical_lookup_ignores_case_and_spaces(self):
        self.assertEqual(symptom_values.normalize_symptom_value(" Bad ").severity, 10)
        self.assertEqual(symptom_values.normalize_symptom_value("moderate").severity, 5)
        self.assertEqual(symptom_values.normalize_symptom_value("great").severity, 1)
        self.assertEqual(symptom_values.normalize_symptom_value("exhausted").severity, 9)

    def test_unknown_categorical_defaults_with_warning(self):
        with self.assertLogs(symptom_values.logger, level="WARNING") as captured:
            result = symptom_values.normalize_symptom_value("meh")
        self.assertEqual(result.severity, 5)
        self.assertTrue(any("meh" in line for line in captured.output))

    def test_canonical_mapping_passes_through(self):
        result = symptom_values.normalize_symptom_value({"severity": 3, "location": "left knee"})
        self.assertEqual(result, CanonicalSymptom(severity=3, location="left knee"))
        self.assertEqual(result.to_dict(), {"severity": 3, "location": "left knee"})

    def test_canonical_instance_is_returned_unchanged(self):
        value = CanonicalSymptom(severity=6, notes="after lunch")
        self.assertIs(symptom_values.normalize_symptom_value(value), value)

    def test_unparseable_values_are_omitted(self):
        self.assertIsNone(symptom_values.normalize_symptom_value(None))
        with self.assertLogs(symptom_values.logger, level="WARNING"):
            self.assertIsNone(symptom_values.normalize_symptom_value({"severity": "high"}))
        with self.assertLogs(symptom_values.logger, level="WARNING"):
            self.assertIsNone(symptom_values.normalize_symptom_value([1, 2]))

    def test_bad_value_does_not_drop_the_rest_of_the_map(self):
        with self.assertLogs(symptom_values.logger, level="WARNING"):
            normalized = symptom_values.normalize_symptom_map({
                "headache": 3,
                "rash": ["red"],
                "nausea": None,
                "fatigue": "tired",
            })
        self.assertEqual(list(normalized), ["headache", "fatigue"])
        self.assertEqual(normalized["fatigue"].severity, 8)


class SeverityAndTypeTests(unittest.TestCase):
    def test_extract_severity_only_reads_numbers(self):
        self.assertEqual(symptom_values.extract_severity(4), 4)
        self.assertEqual(symptom_values.extract_severity({"severity": 6}), 6)
        self.assertIsNone(symptom_values.extract_severity(True))
        self.assertIsNone(symptom_values.extract_severity("bad"))
        self.assertIsNone(symptom_values.extract_severity(float("nan")))
        self.assertIsNone(symptom_values.extract_severity({"location": "back"}))

    def test_classify_boolean(self):
        self.assertEqual(symptom_values.classify_symptom_type([True, False, None]), symptom_values.BOOLEAN)

    def test_classify_numeric_accepts_canonical_values(self):
        values = [1, {"severity": 2}, None, 7.5]
        self.assertEqual(symptom_values.classify_symptom_type(values), symptom_values.NUMERIC)

    def test_classify_falls_back_to_categorical(self):
        self.assertEqual(symptom_values.classify_symptom_type([1, "bad"]), symptom_values.CATEGORICAL)
        self.assertEqual(symptom_values.classify_symptom_type([True, 1]), symptom_values.CATEGORICAL)
        self.assertEqual(symptom_values.classify_symptom_type([]), symptom_values.CATEGORICAL)
        self.assertEqual(symptom_values.classify_symptom_type([None]), symptom_values.CATEGORICAL)


if __name__ == "__main__":
    unittest.main()

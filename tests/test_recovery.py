"""
Unit tests for AI response recovery

Tests:
- extract_json_array: locating the array in prose
- recover: truncated responses, corrupted records, garbage input
"""

import json
import random

import pytest

from hrbridge.api.recovery import extract_json_array, recover


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def records():
    """Five mapping records with JSON punctuation inside strings"""
    return [
        {
            "sourceField": {"id": f"data.field{i}", "name": f"field{i}", "path": f"data.field{i}"},
            "targetPath": f"employee.field{i}",
            "confidence": 90 - i,
            "reasoning": "names match, see {field} [x] \"quoted\"",
        }
        for i in range(5)
    ]


# ============================================================================
# EXTRACT JSON ARRAY
# ============================================================================


class TestExtractJsonArray:
    """Tests for locating the array region"""

    def test_first_balanced_region(self):
        assert extract_json_array("text [1, [2]] more [3]") == "[1, [2]]"

    def test_brackets_inside_strings(self):
        assert extract_json_array('x ["a]b", 1] y') == '["a]b", 1]'

    def test_unclosed_array(self):
        assert extract_json_array("abc [1, 2") == "[1, 2"

    def test_no_array(self):
        assert extract_json_array("  hello ") == "hello"

    def test_empty(self):
        assert extract_json_array("") == ""


# ============================================================================
# RECOVER
# ============================================================================


class TestRecover:
    """Tests for record recovery"""

    def test_empty_and_garbage(self):
        assert recover("") == []
        assert recover("   ") == []
        assert recover("garbage") == []
        assert recover(None) == []
        assert recover(42) == []

    def test_valid_array_returned_as_is(self, records):
        assert recover(json.dumps(records)) == records

    def test_array_inside_prose(self, records):
        text = "Here are the mappings:\n```json\n" + json.dumps(records[:2]) + "\n```\nDone."
        assert recover(text) == records[:2]

    def test_truncated_mid_record(self, records):
        """N records cut inside record N give the first N-1"""
        text = json.dumps(records)
        cut = text.index('"targetPath": "employee.field4"')

        assert recover(text[:cut]) == records[:4]

    def test_truncated_anywhere_in_last_record(self, records):
        text = json.dumps(records)
        last_start = text.rindex('{"sourceField"')
        rng = random.Random(7)

        for cut in rng.sample(range(last_start + 1, len(text) - 1), 60):
            assert recover(text[:cut]) == records[:-1], text[:cut]

    def test_truncated_after_first_record(self, records):
        text = json.dumps(records)
        cut = text.index('{"sourceField"', 2) + 5
        assert recover(text[:cut]) == records[:1]

    def test_record_scan(self):
        """A corrupted record is skipped, complete ones after it are kept"""
        text = (
            '[{"sourceField": "a", "targetPath": "x"}, '
            '{"sourceField": broken}, '
            '{"sourceField": "b", "targetPath": "y"}'
        )
        assert recover(text) == [
            {"sourceField": "a", "targetPath": "x"},
            {"sourceField": "b", "targetPath": "y"},
        ]

    def test_record_scan_requires_source_and_target(self):
        text = '[{"sourceField": "a"} {"sourceField": "b", "targetPath": "y"} {"sourceField'
        assert recover(text) == [{"sourceField": "b", "targetPath": "y"}]

    def test_never_raises(self):
        rng = random.Random(42)
        alphabet = '[]{}",:\\ab1 '

        for _ in range(500):
            text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 60)))
            assert isinstance(recover(text), list)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

"""Unit tests for parsing the model's batch response."""

import pytest

from biteboard.core.exceptions import BatchParseError
from biteboard.services.response_parser import parse_batch_response, strip_code_fences


class TestStripCodeFences:
    """Tests for strip_code_fences."""

    def test_json_fence(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_no_fence(self):
        assert strip_code_fences('  {"a": 1} ') == '{"a": 1}'


class TestParseBatchResponse:
    """Tests for parse_batch_response."""

    def test_maps_dishes_per_place(self):
        """Each requested place gets its dish list."""
        text = (
            '{"p1": [{"dish_name": "Croissant", "mentions": 4, "description": "Flaky"}],'
            ' "p2": [{"dish_name": "Mocha", "mentions": 2, "description": "Sweet"}]}'
        )

        results = parse_batch_response(text, ["p1", "p2"])

        assert results["p1"][0].dish_name == "Croissant"
        assert results["p1"][0].mentions == 4
        assert results["p2"][0].dish_name == "Mocha"

    def test_fenced_response(self):
        """Markdown fences around the JSON are tolerated."""
        text = '```json\n{"p1": [{"dish_name": "Latte"}]}\n```'
        results = parse_batch_response(text, ["p1"])
        assert results["p1"][0].dish_name == "Latte"

    def test_missing_key_is_none(self):
        """A place the model left out resolves to None."""
        results = parse_batch_response('{"p1": [{"dish_name": "Latte"}]}', ["p1", "p2"])
        assert results["p2"] is None

    def test_unrequested_keys_ignored(self):
        """Keys for places not in the prompt are dropped."""
        results = parse_batch_response('{"p1": [], "other": [{"dish_name": "Tea"}]}', ["p1"])
        assert list(results) == ["p1"]

    def test_empty_list_kept(self):
        """An empty dish list is an answer, not a missing result."""
        results = parse_batch_response('{"p1": []}', ["p1"])
        assert results["p1"] == []

    def test_all_invalid_dishes_is_none(self):
        """A list with nothing usable in it resolves to None."""
        results = parse_batch_response('{"p1": [{"mentions": 3}, "Latte"]}', ["p1"])
        assert results["p1"] is None

    def test_non_list_value_is_none(self):
        """A malformed value for one place only affects that place."""
        results = parse_batch_response(
            '{"p1": "nothing good", "p2": [{"dish_name": "Scone"}]}',
            ["p1", "p2"],
        )
        assert results["p1"] is None
        assert results["p2"][0].dish_name == "Scone"

    def test_invalid_dishes_dropped(self):
        """Dish entries without a name are skipped."""
        results = parse_batch_response(
            '{"p1": [{"mentions": 3}, {"dish_name": "Bagel", "mentions": 2}]}',
            ["p1"],
        )
        assert [d.dish_name for d in results["p1"]] == ["Bagel"]

    def test_defaults_for_missing_fields(self):
        """mentions and description default when omitted."""
        results = parse_batch_response('{"p1": [{"dish_name": "Bagel"}]}', ["p1"])
        dish = results["p1"][0]
        assert dish.mentions == 0
        assert dish.description == ""

    def test_invalid_json_raises(self):
        """Unparseable text is a batch-level failure."""
        with pytest.raises(BatchParseError) as exc_info:
            parse_batch_response("Sorry, I cannot help with that.", ["p1"])
        assert exc_info.value.raw_text == "Sorry, I cannot help with that."

    def test_non_object_raises(self):
        """A JSON array is not an acceptable top-level shape."""
        with pytest.raises(BatchParseError):
            parse_batch_response('[{"dish_name": "Latte"}]', ["p1"])

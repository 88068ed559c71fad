# tests/test_llm_parsing.py
"""
Tests for decoding JSON out of model replies.
"""

from app.llm.parsing import ParseFailed, Parsed, parse_json_array, parse_json_object


class TestParseJsonObject:
    def test_plain_json(self):
        result = parse_json_object('{"suggestions": ["a"]}')
        assert result == Parsed(data={"suggestions": ["a"]})

    def test_fenced_json(self):
        reply = 'Here you go:\n```json\n{"suggestions": ["a", "b"]}\n```\nEnjoy.'
        assert parse_json_object(reply).data == {"suggestions": ["a", "b"]}

    def test_json_inside_prose(self):
        reply = 'Sure! {"headline": "H"} Let me know if you need more.'
        assert parse_json_object(reply).data == {"headline": "H"}

    def test_empty_reply(self):
        result = parse_json_object("   ")
        assert isinstance(result, ParseFailed)
        assert result.reason == "empty reply"

    def test_none_reply(self):
        assert not parse_json_object(None).ok

    def test_array_is_not_an_object(self):
        result = parse_json_object("[1, 2]")
        assert not result.ok
        assert result.raw == "[1, 2]"

    def test_garbage_keeps_truncated_raw(self):
        result = parse_json_object("x" * 500)
        assert not result.ok
        assert len(result.raw) == 200


class TestParseJsonArray:
    def test_plain_array(self):
        assert parse_json_array('[{"claim": "c"}]').data == [{"claim": "c"}]

    def test_fenced_array(self):
        assert parse_json_array('```\n["a"]\n```').data == ["a"]

    def test_wrapper_object_unwrapped(self):
        assert parse_json_array('{"claims": [{"claim": "c"}]}').data == [{"claim": "c"}]

    def test_ambiguous_wrapper_rejected(self):
        assert not parse_json_array('{"a": [1], "b": [2]}').ok

    def test_empty_array_is_valid(self):
        assert parse_json_array("[]") == Parsed(data=[])

    def test_unparseable(self):
        result = parse_json_array("No claims found in this text.")
        assert isinstance(result, ParseFailed)

"""Tests for message format detection."""

import json

import pytest

from whatsdesk.messages.formats import MessageFormat, detect


class TestDetectStrings:
    """String inputs."""

    def test_plain_text_is_simple_json_low_confidence(self):
        result = detect("olá, tudo bem?")
        assert result.format == MessageFormat.SIMPLE_JSON
        assert result.confidence == 0.5
        assert result.data == "olá, tudo bem?"

    def test_json_string_is_decoded(self):
        result = detect('{"type": "ai", "content": "Hello"}')
        assert result.format == MessageFormat.SIMPLE_JSON
        assert result.confidence == 0.9
        assert result.data == {"type": "ai", "content": "Hello"}

    def test_json_scalar_is_literal_text(self):
        result = detect("42")
        assert result.format == MessageFormat.SIMPLE_JSON
        assert result.data == "42"

    def test_json_list_is_literal_text(self):
        result = detect("[1, 2]")
        assert result.format == MessageFormat.SIMPLE_JSON
        assert result.data == "[1, 2]"

    def test_json_string_literal_is_unquoted(self):
        result = detect('"olá"')
        assert result.format == MessageFormat.SIMPLE_JSON
        assert result.confidence == 0.5
        assert result.data == "olá"

    def test_langchain_json_string(self):
        raw = json.dumps({"type": "ai", "content": "x", "additional_kwargs": {}})
        assert detect(raw).format == MessageFormat.LANGCHAIN_OBJECT


class TestDetectObjects:
    """Object inputs and priority order."""

    @pytest.mark.parametrize("key", ["additional_kwargs", "response_metadata", "tool_calls"])
    def test_langchain_keys(self, key):
        result = detect({key: {}, "content": "x"})
        assert result.format == MessageFormat.LANGCHAIN_OBJECT
        assert result.confidence == 0.9

    def test_langchain_wins_over_simple_json(self):
        data = {"type": "ai", "content": "x", "response_metadata": {}}
        assert detect(data).format == MessageFormat.LANGCHAIN_OBJECT

    def test_simple_json_with_empty_content(self):
        """content may be empty but must be present."""
        assert detect({"type": "human", "content": ""}).format == MessageFormat.SIMPLE_JSON

    def test_simple_json_checked_before_legacy(self):
        """A record with type, content and message is SIMPLE_JSON, not LEGACY_N8N."""
        data = {"type": "human", "content": "", "message": "legacy text"}
        assert detect(data).format == MessageFormat.SIMPLE_JSON

    def test_type_without_content_is_not_simple_json(self):
        assert detect({"type": "human"}).format == MessageFormat.UNKNOWN

    def test_legacy_n8n(self):
        result = detect({"message": "olá"})
        assert result.format == MessageFormat.LEGACY_N8N
        assert result.confidence == 0.8

    def test_legacy_requires_no_content(self):
        assert detect({"message": "a", "content": "b"}).format == MessageFormat.UNKNOWN

    def test_unknown_object(self):
        result = detect({"text": "olá"})
        assert result.format == MessageFormat.UNKNOWN
        assert result.confidence == 0.0

    def test_empty_inputs_are_unknown(self):
        assert detect(None).format == MessageFormat.UNKNOWN
        assert detect("").format == MessageFormat.UNKNOWN
        assert detect({}).format == MessageFormat.UNKNOWN


class TestDetectTotality:
    """Detection is total and deterministic."""

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            "",
            "texto",
            "null",
            "true",
            '{"message": null}',
            {"content": None, "type": "ai"},
            {"tool_calls": None},
            {"a": 1},
            '{"broken": ',
        ],
    )
    def test_same_result_on_repeated_calls(self, raw):
        first = detect(raw)
        second = detect(raw)
        assert first.format in MessageFormat
        assert (first.format, first.confidence) == (second.format, second.confidence)

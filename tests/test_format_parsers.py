"""Tests for format parsers and content cleaning."""

import json

import pytest

from whatsdesk.messages.formats import MessageFormat
from whatsdesk.messages.parsers import (
    clean_content,
    parse_as,
    parse_langchain,
    parse_legacy_n8n,
    parse_message,
    parse_simple_json,
)


class TestCleanContent:
    """Tests for clean_content()."""

    def test_trims_and_collapses_newlines(self):
        assert clean_content("  Hello\n\n\nworld  ") == "Hello\nworld"

    def test_collapses_spaces_and_tabs(self):
        assert clean_content("a  \t b") == "a b"

    def test_strips_edge_newlines(self):
        assert clean_content("\n\nabc\n") == "abc"

    def test_whitespace_only_is_empty(self):
        assert clean_content(" \n\t \n ") == ""

    def test_empty(self):
        assert clean_content("") == ""

    @pytest.mark.parametrize(
        "raw",
        [
            "  Hello\n\n\nworld  ",
            "a \n \n b",
            "\t\tx\t\n\n\ty\n",
            "a\n \n\nb",
            "linha 1\r\nlinha 2",
            "   ",
            "ok",
        ],
    )
    def test_idempotent(self, raw):
        once = clean_content(raw)
        assert clean_content(once) == once


class TestParseLangchain:
    """LANGCHAIN_OBJECT / LANGCHAIN_STRING parsing."""

    def test_tool_call_arguments_string(self):
        data = {
            "content": "",
            "tool_calls": [
                {"function": {"arguments": json.dumps({"message": "Seu pedido saiu"})}}
            ],
        }
        parsed = parse_langchain(data)
        assert parsed.content == "Seu pedido saiu"
        assert parsed.role == "ai"

    def test_tool_call_arguments_pre_parsed(self):
        data = {"tool_calls": [{"function": {"arguments": {"message": "Olá!"}}}]}
        parsed = parse_langchain(data)
        assert parsed.content == "Olá!"
        assert parsed.role == "ai"

    def test_malformed_arguments_fall_back_to_content(self):
        data = {
            "type": "human",
            "content": "pergunta",
            "tool_calls": [{"function": {"arguments": "{not json"}}],
        }
        parsed = parse_langchain(data)
        assert parsed.content == "pergunta"
        assert parsed.role == "human"

    def test_direct_content_ai(self):
        parsed = parse_langchain({"type": "ai", "content": "resposta", "additional_kwargs": {}})
        assert parsed.role == "ai"

    def test_direct_content_other_type_is_human(self):
        parsed = parse_langchain({"type": "tool", "content": "x", "additional_kwargs": {}})
        assert parsed.role == "human"

    def test_list_content_parts(self):
        data = {"type": "ai", "content": [{"type": "text", "text": "parte 1"}, "parte 2"], "additional_kwargs": {}}
        assert parse_langchain(data).content == "parte 1\nparte 2"

    def test_no_content_returns_none(self):
        assert parse_langchain({"additional_kwargs": {}}) is None
        assert parse_langchain({"additional_kwargs": {}, "content": "   "}) is None

    def test_langchain_string_uses_same_parser(self):
        data = {"type": "ai", "content": "x", "additional_kwargs": {}}
        from_string = parse_as(MessageFormat.LANGCHAIN_STRING, data)
        from_object = parse_as(MessageFormat.LANGCHAIN_OBJECT, data)
        assert (from_string.content, from_string.role) == (from_object.content, from_object.role)


class TestParseLegacyAndSimple:
    """LEGACY_N8N and SIMPLE_JSON parsing."""

    def test_legacy_is_always_human(self):
        parsed = parse_legacy_n8n({"message": " oi "})
        assert parsed.content == "oi"
        assert parsed.role == "human"

    def test_legacy_empty_message(self):
        assert parse_legacy_n8n({"message": ""}) is None
        assert parse_legacy_n8n({"message": None}) is None

    @pytest.mark.parametrize("type_,role", [("ai", "ai"), ("assistant", "ai"), ("human", "human"), ("user", "human")])
    def test_simple_json_roles(self, type_, role):
        assert parse_simple_json({"type": type_, "content": "x"}).role == role

    def test_simple_json_uses_own_timestamp(self):
        parsed = parse_simple_json({"type": "ai", "content": "x", "timestamp": "2024-05-01T12:00:00Z"})
        assert parsed.timestamp == "2024-05-01T12:00:00Z"

    def test_simple_json_default_timestamp_is_now(self):
        parsed = parse_simple_json({"type": "ai", "content": "x"})
        assert parsed.timestamp.endswith("Z")

    def test_literal_text(self):
        parsed = parse_simple_json("texto livre")
        assert parsed.content == "texto livre"
        assert parsed.role == "human"


class TestParseMessage:
    """End-to-end detect + parse."""

    def test_example_scenario(self):
        raw = '{"type":"ai","content":"  Hello\\n\\n\\nworld  "}'
        parsed = parse_message(raw)
        assert parsed.content == "Hello\nworld"
        assert parsed.role == "ai"

    def test_json_string_literal_body(self):
        parsed = parse_message('"olá"')
        assert parsed.content == "olá"
        assert parsed.role == "human"

    def test_unknown_is_dropped(self):
        assert parse_message({"foo": "bar"}) is None

    def test_blank_content_is_dropped(self):
        assert parse_message('{"type": "human", "content": "  \\n  "}') is None

    def test_every_format_has_a_parser(self):
        for message_format in MessageFormat:
            # must not raise KeyError
            parse_as(message_format, {})

"""Tests for phone extraction from session ids."""

from whatsdesk.messages.phone import (
    extract_name_from_session_id,
    extract_phone,
    is_valid_phone_number,
)


class TestExtractPhone:
    """Tests for extract_phone()."""

    def test_whatsapp_jid(self):
        assert extract_phone("5511999998888@s.whatsapp.net") == "5511999998888"

    def test_bare_phone(self):
        assert extract_phone("5511999998888") == "5511999998888"

    def test_phone_dash_name(self):
        assert extract_phone("5511999998888-Maria Silva") == "5511999998888"

    def test_digits_embedded_in_token(self):
        assert extract_phone("session_5577988887777_v2") == "5577988887777"

    def test_long_digit_run_yields_first_fifteen(self):
        assert extract_phone("12345678901234567890") == "123456789012345"

    def test_short_digits_fall_back_to_prefix_before_at(self):
        assert extract_phone("12345@g.us") == "12345"

    def test_opaque_token_returned_unchanged(self):
        assert extract_phone("abc-token") == "abc-token"

    def test_empty_string(self):
        assert extract_phone("") == ""

    def test_only_suffix(self):
        """A session id starting with @ extracts to empty string."""
        assert extract_phone("@s.whatsapp.net") == ""


class TestIsValidPhoneNumber:
    """Tests for is_valid_phone_number()."""

    def test_valid_lengths(self):
        assert is_valid_phone_number("1234567890")
        assert is_valid_phone_number("123456789012345")

    def test_too_short_or_long(self):
        assert not is_valid_phone_number("123456789")
        assert not is_valid_phone_number("1234567890123456")

    def test_non_digits(self):
        assert not is_valid_phone_number("5511999998888@s.whatsapp.net")
        assert not is_valid_phone_number("+5511999998888")

    def test_trailing_newline_rejected(self):
        assert not is_valid_phone_number("5511999998888\n")

    def test_fallback_result_is_distinguishable(self):
        assert not is_valid_phone_number(extract_phone("abc-token"))


class TestExtractNameFromSessionId:
    """Tests for extract_name_from_session_id()."""

    def test_phone_dash_name(self):
        assert extract_name_from_session_id("5511999998888-Maria Silva") == "Maria Silva"

    def test_name_with_dashes(self):
        assert extract_name_from_session_id("5511999998888-Ana-Paula") == "Ana-Paula"

    def test_no_name_part(self):
        assert extract_name_from_session_id("5511999998888") is None
        assert extract_name_from_session_id("5511999998888- ") is None

    def test_prefix_not_a_phone(self):
        assert extract_name_from_session_id("abc-Maria") is None

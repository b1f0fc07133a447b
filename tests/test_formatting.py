"""Tests for strip_formatting."""

from __future__ import annotations

import pytest

from wopr_irc.formatting.strip import strip_formatting


class TestStripFormatting:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("\x02bold text\x02", "bold text"),
            ("\x1ditalic\x1d", "italic"),
            ("\x1funderline\x1f", "underline"),
            ("\x1estrike\x1e", "strike"),
            ("\x11mono\x11", "mono"),
            ("\x16reversed\x16", "reversed"),
            ("before\x0fafter", "beforeafter"),
        ],
    )
    def test_strips_single_toggle_codes(self, raw, expected):
        assert strip_formatting(raw) == expected

    def test_strips_color_with_foreground_only(self):
        assert strip_formatting("\x034red text") == "red text"

    def test_strips_color_with_foreground_and_background(self):
        assert strip_formatting("\x034,12red on blue") == "red on blue"

    def test_strips_two_digit_color_and_bare_terminator(self):
        assert strip_formatting("\x0312blue text\x03") == "blue text"

    def test_strips_mixed_formatting(self):
        # Arrange
        raw = "\x02\x034,12bold red\x03\x02 plain"

        # Act
        result = strip_formatting(raw)

        # Assert
        assert result == "bold red plain"

    def test_color_consumes_at_most_two_digits(self):
        # Arrange: third digit is message text
        raw = "\x03123 apples"

        # Act / Assert
        assert strip_formatting(raw) == "3 apples"

    def test_comma_without_background_digits_is_kept(self):
        assert strip_formatting("\x034,hello") == ",hello"

    def test_plain_text_unchanged(self):
        assert strip_formatting("hello world") == "hello world"

    def test_empty_string(self):
        assert strip_formatting("") == ""

    def test_idempotent_on_formatted_input(self):
        # Arrange
        raw = "\x02\x1d\x0304,05hi\x0f there\x03"

        # Act
        once = strip_formatting(raw)

        # Assert
        assert strip_formatting(once) == once == "hi there"

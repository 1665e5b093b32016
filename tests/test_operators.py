"""Tests for the placeholder operator pipeline."""

from datetime import datetime

import pytest
from receipt_composer.templates.operators import (
    BaseOperator,
    OperatorPipeline,
    pad_text,
    stringify,
)
from receipt_composer.templates.paths import UnresolvedPath


class TestOperatorPipeline:
    """Test suite for the built-in operators."""

    def setup_method(self):
        """Set up test fixtures."""
        self.pipeline = OperatorPipeline(datetime_format="%Y-%m-%d %H:%M")

    def run(self, value, suffix):
        return self.pipeline.run(value, self.pipeline.parse_operations(suffix))

    def test_parse_operations(self):
        """Test splitting an operator suffix."""
        operations = self.pipeline.parse_operations(" | padLeft:5,0 | default:'N/A' | fit ")

        assert operations == [('padLeft', '5,0'), ('default', "'N/A'"), ('fit', None)]

    def test_parse_operations_keeps_colons_in_argument(self):
        assert self.pipeline.parse_operations("|default:12:30") == [('default', '12:30')]

    def test_default_replaces_empty(self):
        assert self.run("", "|default:X") == "X"
        assert self.run(None, "|default:X") == "X"

    def test_default_strips_quotes(self):
        """Test quoted default literals."""
        assert self.run("", "|default:'Guest'") == "Guest"
        assert self.run("", '|default:"X"') == "X"

    def test_default_keeps_present_value(self):
        assert self.run("Ana", "|default:'Guest'") == "Ana"
        assert self.run(0, "|default:'none'") == 0

    def test_default_replaces_unresolved_path(self):
        assert self.run(UnresolvedPath("nickname"), "|default:X") == "X"
        assert self.run(UnresolvedPath("nickname"), "|fit:4") == "nick"

    def test_default_without_argument(self):
        assert self.run("", "|default") is None

    def test_pad_left_with_char(self):
        """Test zero padding."""
        assert self.run("7", "|padLeft:5,0") == "00007"

    def test_pad_left_default_char(self):
        assert self.run(42, "|padLeft:5") == "   42"

    def test_pad_right(self):
        assert self.run("ab", "|padRight:5,.") == "ab..."

    def test_pad_noop_when_wide_enough(self):
        assert self.run("abcdef", "|padLeft:3,0") == "abcdef"

    def test_pad_invalid_width_is_noop(self):
        assert self.run("7", "|padLeft:wide") == "7"
        assert self.run("7", "|padLeft") == "7"

    def test_pad_quoted_space(self):
        assert self.run("7", "|padLeft:3,' '") == "  7"

    def test_fit_left(self):
        """Test fitting shorter text to the left."""
        assert self.run("abc", "|fit:10,left") == "abc       "

    def test_fit_right(self):
        assert self.run("abc", "|fit:10,right") == "       abc"

    def test_fit_center_extra_space_on_right(self):
        """Test that odd padding puts the extra space on the right."""
        assert self.run("abc", "|fit:8,center") == "  abc   "
        assert self.run("abcd", "|fit:8,center") == "  abcd  "

    def test_fit_truncates_without_ellipsis(self):
        assert self.run("abcdef", "|fit:2,left") == "ab"
        assert self.run("abcdef", "|fit:2,right") == "ab"

    def test_fit_default_alignment_is_left(self):
        assert self.run("ab", "|fit:4") == "ab  "
        assert self.run("ab", "|fit:4,diagonal") == "ab  "

    def test_fit_non_positive_width(self):
        assert self.run("abc", "|fit:0") == ""
        assert self.run("abc", "|fit:-2") == ""

    def test_format_datetime(self):
        """Test reformatting an ISO timestamp."""
        assert self.run("2024-01-15T14:30:25", "|format:datetime") == "2024-01-15 14:30"

    def test_format_datetime_epoch_millis(self):
        expected = datetime.fromtimestamp(1705329025).strftime("%Y-%m-%d %H:%M")

        assert self.run(1705329025000, "|format:datetime") == expected

    def test_format_datetime_unparseable_is_unchanged(self):
        assert self.run("unknown", "|format:datetime") == "unknown"

    @pytest.mark.parametrize("text", ["sun", "today", "March"])
    def test_format_datetime_needs_digits(self, text):
        assert self.run(text, "|format:datetime") == text

    def test_format_datetime_partial_date_is_stable(self):
        """Test that missing date fields do not come from the current day."""
        assert self.run("Jan 15 14:30", "|format:datetime") == "1970-01-15 14:30"

    def test_format_skips_unresolved_path(self):
        assert self.run(UnresolvedPath("date"), "|format:datetime") == "date"

    def test_format_other_kind_is_noop(self):
        assert self.run("2024-01-15T14:30:25", "|format:currency") == "2024-01-15T14:30:25"

    def test_unknown_operator_is_noop(self):
        """Test that unknown operators pass the value through."""
        assert self.run("Ana", "|shout|whisper:3") == "Ana"

    def test_operators_run_left_to_right(self):
        assert self.run("", "|default:7|padLeft:3,0") == "007"
        assert self.run("abcdef", "|fit:3|padLeft:5,*") == "**abc"


class TestCustomOperators:
    """Test suite for operator registration."""

    def test_add_operator(self):
        class UpperOperator(BaseOperator):
            def __init__(self):
                super().__init__("upper")

            def apply(self, value, arg):
                return stringify(value).upper()

        pipeline = OperatorPipeline()
        pipeline.add_operator(UpperOperator())

        assert pipeline.get_operator_by_name("upper") is not None
        assert pipeline.run("ana", [("upper", None)]) == "ANA"

    def test_add_operator_rejects_other_objects(self):
        pipeline = OperatorPipeline()

        with pytest.raises(ValueError):
            pipeline.add_operator(lambda value, arg: value)


class TestStringify:
    """Test suite for value stringification."""

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        ("text", "text"),
        (0, "0"),
        (2.0, "2"),
        (2.5, "2.5"),
        (True, "true"),
        (False, "false"),
        (["a", 1], "a,1"),
        ({"a": 1}, '{"a":1}'),
    ])
    def test_stringify(self, value, expected):
        assert stringify(value) == expected

    def test_pad_text_multi_char_fill(self):
        assert pad_text("7", 6, "ab", left=True) == "ababa7"
        assert pad_text("7", 3, "", left=True) == "7"

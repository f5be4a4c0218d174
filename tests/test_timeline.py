"""
Tests for the timeline layer.

Tests for:
- Instruction model
- parse_text / parse
"""

import logging

import pytest

from schedload.errors import DirectiveFileError
from schedload.timeline import (
    ContinueAt,
    Delay,
    LoadRequest,
    ParseResult,
    parse,
    parse_text,
)

# =============================================================================
# Instruction Tests
# =============================================================================


class TestInstructions:
    """Tests for instruction dataclasses."""

    def test_delay_rejects_negative(self):
        with pytest.raises(ValueError):
            Delay(-1)

    def test_delay_seconds(self):
        assert Delay(1500).seconds == 1.5

    def test_line_number_not_part_of_equality(self):
        assert Delay(100, line_number=3) == Delay(100)
        assert LoadRequest("a.b", "Finder", line_number=9) == LoadRequest("a.b", "Finder")

    @pytest.mark.parametrize("label", ["default", "DEFAULT", "Default"])
    def test_default_label_any_case(self, label):
        assert LoadRequest("json", label).uses_default_loader

    def test_other_label_is_not_default(self):
        assert not LoadRequest("json", "defaults").uses_default_loader

    def test_instructions_are_immutable(self):
        request = LoadRequest("a.b", "Finder")
        with pytest.raises(AttributeError):
            request.artifact_id = "c.d"


# =============================================================================
# Parser Tests
# =============================================================================


class TestParseText:
    """Tests for parse_text."""

    def test_comment_delay_and_default_load(self):
        result = parse_text("\n#comment\n#delay=100\nfoo.Bar default\n")

        assert result.timeline == (Delay(100), LoadRequest("foo.Bar", "default"))
        assert result.warnings == ()
        assert result.ok

    def test_invalid_delay_value(self):
        result = parse_text("#delay=notanumber\n")

        assert result.timeline == ()
        assert len(result.warnings) == 1
        assert result.warnings[0].line_number == 1
        assert "delay" in result.warnings[0].reason

    def test_single_word_line(self):
        result = parse_text("onlyoneword\n")

        assert result.timeline == ()
        assert len(result.warnings) == 1
        assert result.warnings[0].line == "onlyoneword"

    def test_negative_delay_is_a_warning(self):
        result = parse_text("#delay=-5\n")
        assert result.timeline == ()
        assert len(result.warnings) == 1

    def test_extra_tokens_ignored(self):
        result = parse_text("plugins.alpha PluginFinder trailing words\n")
        assert result.timeline == (LoadRequest("plugins.alpha", "PluginFinder"),)

    def test_whitespace_separated_tokens(self):
        result = parse_text("  plugins.alpha \t PluginFinder  \n")
        assert result.timeline == (LoadRequest("plugins.alpha", "PluginFinder"),)

    def test_whitespace_only_line_is_blank(self):
        result = parse_text("   \n\t\n")
        assert result.timeline == ()
        assert result.warnings == ()

    def test_comment_variants_ignored(self):
        result = parse_text("#\n# delay=100\n#delay\n#continueAt\n")
        assert result.timeline == ()
        assert result.warnings == ()

    def test_continue_at_directive(self):
        result = parse_text("#continueAt=2500\n")
        assert result.timeline == (ContinueAt(2500),)

    def test_invalid_continue_at(self):
        result = parse_text("#continueAt=soon\n")
        assert result.timeline == ()
        assert len(result.warnings) == 1

    def test_order_matches_line_order(self):
        text = (
            "a.one FinderA\n"
            "#delay=10\n"
            "a.two FinderB\n"
            "#delay=20\n"
            "#delay=30\n"
            "a.three default\n"
        )
        result = parse_text(text)

        assert result.timeline == (
            LoadRequest("a.one", "FinderA"),
            Delay(10),
            LoadRequest("a.two", "FinderB"),
            Delay(20),
            Delay(30),
            LoadRequest("a.three", "default"),
        )
        assert [i.line_number for i in result.timeline] == [1, 2, 3, 4, 5, 6]

    def test_malformed_lines_do_not_abort(self):
        text = "bad\n#delay=x\nplugins.alpha PluginFinder\n#delay=5\n"
        result = parse_text(text)

        assert result.timeline == (LoadRequest("plugins.alpha", "PluginFinder"), Delay(5))
        assert [w.line_number for w in result.warnings] == [1, 2]

    def test_instruction_count_matches_valid_lines(self):
        valid = ["#delay=1", "a b", "#continueAt=3", "c default"]
        noise = ["", "# note", "x", "#delay=?"]
        text = "\n".join(noise[:2] + valid[:2] + noise[2:] + valid[2:])

        result = parse_text(text)

        assert len(result) == len(valid)
        assert len(result.warnings) == 2

    def test_windows_line_endings(self):
        result = parse_text("#delay=10\r\nfoo.Bar default\r\n")
        assert result.timeline == (Delay(10), LoadRequest("foo.Bar", "default"))

    def test_warnings_are_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="schedload"):
            parse_text("onlyoneword\n", source="schedule.txt")

        assert "schedule.txt" in caplog.text
        assert "onlyoneword" in caplog.text


class TestParseFile:
    """Tests for parse (file based)."""

    def test_parse_file(self, write_directives):
        path = write_directives("#delay=100\nfoo.Bar default\n")

        result = parse(path)

        assert isinstance(result, ParseResult)
        assert result.source == str(path)
        assert result.timeline == (Delay(100), LoadRequest("foo.Bar", "default"))

    def test_missing_file_is_fatal(self, tmp_path):
        missing = tmp_path / "missing.txt"

        with pytest.raises(DirectiveFileError) as exc_info:
            parse(missing)

        assert exc_info.value.path == missing
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_directory_is_fatal(self, tmp_path):
        with pytest.raises(DirectiveFileError):
            parse(tmp_path)

    def test_empty_file(self, write_directives):
        result = parse(write_directives(""))
        assert result.timeline == ()
        assert result.ok

from __future__ import annotations

import pytest

from manual_import.classifier import (
    DECIMAL,
    GENERIC,
    LineKind,
    classify,
    get_pattern_set,
    parse_header,
)
from manual_import.exceptions import ConfigError


class TestSectionHeaders:
    @pytest.mark.parametrize(
        "line, title",
        [
            ("2.0 Normal Operations", "Normal Operations"),
            ("GENERAL PROVISIONS", "GENERAL PROVISIONS"),
            ("Chapter 3 - Training", "Training"),
            ("Section 4: Maintenance", "Maintenance"),
            ("IV. Operations", "Operations"),
            ("B) Training", "Training"),
            ("  10.0 Security  ", "Security"),
        ],
    )
    def test_section_patterns(self, line: str, title: str) -> None:
        assert parse_header(line) == (LineKind.SECTION_HEADER, title)

    def test_bare_chapter_keeps_whole_line(self) -> None:
        assert parse_header("Chapter 3") == (LineKind.SECTION_HEADER, "Chapter 3")

    def test_upper_case_roman_heading_loses_index(self) -> None:
        assert parse_header("II. OPERATIONS") == (LineKind.SECTION_HEADER, "OPERATIONS")

    def test_short_upper_case_line_is_not_a_section(self) -> None:
        assert classify("NOTE") is LineKind.CONTENT_LINE

    @pytest.mark.parametrize(
        "line",
        ["Q: How do I file a plan?", "A: Use the portal", "A: The Chief Pilot approves."],
    )
    def test_letter_colon_label_is_not_a_section(self, line: str) -> None:
        assert classify(line, section_open=True) is not LineKind.SECTION_HEADER
        assert classify(line) is not LineKind.SECTION_HEADER

    @pytest.mark.parametrize("line", ["CC Recipients list", "MD Approval Required", "CD: Archive"])
    def test_unpunctuated_roman_abbreviation_is_not_a_section(self, line: str) -> None:
        assert classify(line, section_open=True) is not LineKind.SECTION_HEADER

    def test_roman_index_with_paren(self) -> None:
        assert parse_header("XII) Security") == (LineKind.SECTION_HEADER, "Security")


class TestPolicyHeaders:
    @pytest.mark.parametrize(
        "line, title",
        [
            ("2.1 Purpose", "Purpose"),
            ("2.1.3 Record Retention", "Record Retention"),
            ("A. Scope", "Scope"),
            ("I. Scope", "Scope"),
            ("Policy: Access Control", "Access Control"),
            ("procedure : Incident Handling", "Incident Handling"),
        ],
    )
    def test_indexed_policy_patterns(self, line: str, title: str) -> None:
        assert parse_header(line) == (LineKind.POLICY_HEADER, title)

    def test_indexed_policy_without_open_section(self) -> None:
        assert classify("2.1 Purpose", section_open=False) is LineKind.POLICY_HEADER

    def test_upper_case_decimal_policy_is_not_a_section(self) -> None:
        assert parse_header("1.1 SCOPE") == (LineKind.POLICY_HEADER, "SCOPE")

    def test_keyword_without_title_keeps_line(self) -> None:
        assert parse_header("Policy:") == (LineKind.POLICY_HEADER, "Policy:")


class TestShortLineFallback:
    def test_short_line_in_open_section(self) -> None:
        assert classify("Access Reviews", section_open=True) is LineKind.POLICY_HEADER

    def test_short_line_without_section_is_content(self) -> None:
        assert classify("Access Reviews", section_open=False) is LineKind.CONTENT_LINE

    def test_sentence_with_period_is_content(self) -> None:
        assert classify("This manual defines scope.", section_open=True) is LineKind.CONTENT_LINE

    def test_too_short_line_is_content(self) -> None:
        assert classify("Yes", section_open=True) is LineKind.CONTENT_LINE

    def test_lower_case_start_is_content(self) -> None:
        assert classify("applies to contractors", section_open=True) is LineKind.CONTENT_LINE

    @pytest.mark.parametrize("previous", ["including the following,", "as listed below;", "the pre-"])
    def test_continuation_of_previous_line_is_content(self, previous: str) -> None:
        kind = classify("Access Reviews", previous, section_open=True)
        assert kind is LineKind.CONTENT_LINE

    def test_previous_line_with_period_does_not_block(self) -> None:
        kind = classify("Access Reviews", "Staff are trained yearly.", section_open=True)
        assert kind is LineKind.POLICY_HEADER


class TestContentLines:
    @pytest.mark.parametrize("line", ["", "   ", "\t"])
    def test_blank_lines(self, line: str) -> None:
        assert parse_header(line) == (LineKind.CONTENT_LINE, "")

    def test_list_marker_in_upper_case_is_content(self) -> None:
        assert classify("- ALL STAFF MEMBERS") is LineKind.CONTENT_LINE

    def test_content_title_is_trimmed_line(self) -> None:
        assert parse_header("  plain text.  ") == (LineKind.CONTENT_LINE, "plain text.")


class TestPatternSets:
    def test_lookup_is_case_insensitive(self) -> None:
        assert get_pattern_set(" Decimal ") is DECIMAL
        assert get_pattern_set("generic") is GENERIC

    def test_unknown_pattern_set(self) -> None:
        with pytest.raises(ConfigError, match="Unknown pattern set"):
            get_pattern_set("legal")

    def test_decimal_set_ignores_other_conventions(self) -> None:
        assert classify("GENERAL PROVISIONS", patterns=DECIMAL) is LineKind.CONTENT_LINE
        assert classify("A. Scope", patterns=DECIMAL) is LineKind.CONTENT_LINE
        assert classify("Access Reviews", section_open=True, patterns=DECIMAL) is LineKind.CONTENT_LINE

    def test_decimal_set_keeps_decimal_numbering(self) -> None:
        assert classify("3.0 Training", patterns=DECIMAL) is LineKind.SECTION_HEADER
        assert classify("3.2 Refresher Courses", patterns=DECIMAL) is LineKind.POLICY_HEADER

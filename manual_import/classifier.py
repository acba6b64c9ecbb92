"""Line classification for unstructured policy documents.

Each trimmed line is labelled as a section header, a policy header or plain
content by ordered pattern rules, most specific first:

    1. Blank lines are always content.
    2. Section headers: ``2.0 Normal Operations``, an all upper-case line,
       ``Chapter 3`` / ``Section 3``, ``IV. Operations`` or ``B) Training``.
    3. Policy headers: ``2.1 Purpose`` / ``2.1.3 Purpose``, ``A. Scope``,
       ``Policy: ...`` (also Procedure, Requirement, Standard), and a short
       capitalised line without a period while a section is open.
    4. Everything else is content.

The short-line heuristic in rule 3 trades precision for recall: ordinary short
sentences without a full stop are read as policy titles. Roman section indexes
must be followed by ``.`` or ``)`` so that capitalised abbreviations such as
``CC`` or ``MD`` do not open sections; an unpunctuated ``IV Operations`` is
read as a short line instead.
"""
from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from manual_import.exceptions import ConfigError


class LineKind(enum.Enum):
    SECTION_HEADER = "section_header"
    POLICY_HEADER = "policy_header"
    CONTENT_LINE = "content_line"


@dataclass(frozen=True)
class PatternSet:
    """Selects which numbering conventions count as headers."""

    name: str
    decimal_sections: bool = True
    upper_case_sections: bool = True
    chapter_sections: bool = True
    roman_sections: bool = True
    decimal_policies: bool = True
    letter_policies: bool = True
    keyword_policies: bool = True
    short_line_policies: bool = True


GENERIC = PatternSet(name="generic")
DECIMAL = PatternSet(
    name="decimal",
    upper_case_sections=False,
    chapter_sections=False,
    roman_sections=False,
    letter_policies=False,
    keyword_policies=False,
    short_line_policies=False,
)

_PATTERN_SETS: Dict[str, PatternSet] = {p.name: p for p in (GENERIC, DECIMAL)}

_DECIMAL_SECTION_RE = re.compile(r"^\d+\.0\s+(?=[A-Z])")
_CHAPTER_RE = re.compile(r"^(?:chapter|section)\s+\d+\b[.:]?\s*(?:[-–]\s*)?", re.IGNORECASE)
_ROMAN_INDEX_RE = re.compile(r"^(?P<index>[IVXLCDM]+)(?P<punct>[.)])\s+(?=[A-Z])")
_VALID_ROMAN_RE = re.compile(r"^M{0,3}(CM|CD|D?C{0,3})(XC|XL|L?X{0,3})(IX|IV|V?I{0,3})$")
_LETTER_SECTION_RE = re.compile(r"^[A-Z]\)\s+(?=[A-Z])")

_DECIMAL_POLICY_RE = re.compile(r"^\d+\.\d+(?:\.\d+)?\s+(?=[A-Z])")
_LETTER_POLICY_RE = re.compile(r"^[A-Z]\.\s+(?=[A-Z])")
_KEYWORD_POLICY_RE = re.compile(r"^(?:policy|procedure|requirement|standard)\s*:\s*", re.IGNORECASE)
_SHORT_LINE_RE = re.compile(r"^[A-Z][^.]*$")

_POLICY_INDEX_PREFIX_RE = re.compile(r"^(?:\d+\.\d+|[A-Z]\.\s)")
_LIST_MARKER_RE = re.compile(r"^(?:[-*•–]\s|[a-z]\.\s|\d+\)\s)")
_CONTINUATION_ENDINGS = (",", ";", "-")


def get_pattern_set(name: str) -> PatternSet:
    try:
        return _PATTERN_SETS[name.strip().lower()]
    except KeyError:
        raise ConfigError(
            f"Unknown pattern set '{name}'. Choose one of: {', '.join(sorted(_PATTERN_SETS))}."
        ) from None


def classify(
    line: str,
    previous_line: Optional[str] = None,
    *,
    section_open: bool = False,
    patterns: PatternSet = GENERIC,
) -> LineKind:
    kind, _ = parse_header(
        line, previous_line, section_open=section_open, patterns=patterns,
    )
    return kind


def parse_header(
    line: str,
    previous_line: Optional[str] = None,
    *,
    section_open: bool = False,
    patterns: PatternSet = GENERIC,
) -> Tuple[LineKind, str]:
    """Classify *line* and return its kind with the header title.

    The title is the line with its numbering or keyword prefix removed; for
    content lines it is the trimmed line unchanged.
    """
    stripped = line.strip()
    if not stripped:
        return LineKind.CONTENT_LINE, ""

    title = _section_title(stripped, patterns)
    if title is not None:
        return LineKind.SECTION_HEADER, title or stripped

    title = _policy_title(stripped, previous_line, section_open, patterns)
    if title is not None:
        return LineKind.POLICY_HEADER, title or stripped

    return LineKind.CONTENT_LINE, stripped


def _section_title(stripped: str, patterns: PatternSet) -> Optional[str]:
    if patterns.decimal_sections and _DECIMAL_SECTION_RE.match(stripped):
        return _DECIMAL_SECTION_RE.sub("", stripped, count=1).strip()

    if patterns.upper_case_sections and _is_upper_case_heading(stripped):
        return _strip_section_prefix(stripped)

    if patterns.chapter_sections and _CHAPTER_RE.match(stripped):
        return _CHAPTER_RE.sub("", stripped, count=1).strip()

    if patterns.roman_sections:
        return _indexed_title(stripped)

    return None


def _policy_title(
    stripped: str,
    previous_line: Optional[str],
    section_open: bool,
    patterns: PatternSet,
) -> Optional[str]:
    if patterns.decimal_policies and _DECIMAL_POLICY_RE.match(stripped):
        return _DECIMAL_POLICY_RE.sub("", stripped, count=1).strip()

    if patterns.letter_policies and _LETTER_POLICY_RE.match(stripped):
        return _LETTER_POLICY_RE.sub("", stripped, count=1).strip()

    if patterns.keyword_policies and _KEYWORD_POLICY_RE.match(stripped):
        return _KEYWORD_POLICY_RE.sub("", stripped, count=1).strip()

    if (
        patterns.short_line_policies
        and section_open
        and 6 <= len(stripped) <= 99
        and _SHORT_LINE_RE.match(stripped)
        and not _continues(previous_line)
    ):
        return stripped

    return None


def _is_upper_case_heading(stripped: str) -> bool:
    if not 6 <= len(stripped) <= 79:
        return False
    if stripped != stripped.upper() or not any(c.isalpha() for c in stripped):
        return False
    if _POLICY_INDEX_PREFIX_RE.match(stripped) or _LIST_MARKER_RE.match(stripped):
        return False
    return True


def _strip_section_prefix(stripped: str) -> str:
    if _CHAPTER_RE.match(stripped):
        return _CHAPTER_RE.sub("", stripped, count=1).strip()
    title = _indexed_title(stripped)
    return stripped if title is None else title


def _indexed_title(stripped: str) -> Optional[str]:
    # "IV. Operations" or "B) Training"; a lone "I." is a policy index.
    m = _ROMAN_INDEX_RE.match(stripped)
    if m and len(m.group("index")) >= 2 and _VALID_ROMAN_RE.match(m.group("index")):
        return stripped[m.end():].strip()
    if _LETTER_SECTION_RE.match(stripped):
        return _LETTER_SECTION_RE.sub("", stripped, count=1).strip()
    return None


def _continues(previous_line: Optional[str]) -> bool:
    if previous_line is None:
        return False
    return previous_line.rstrip().endswith(_CONTINUATION_ENDINGS)
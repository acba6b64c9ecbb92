"""Single-pass assembly of classified lines into a manual structure.

The builder folds over the input lines carrying its cursor explicitly:

    NO_SECTION  -- nothing opened yet; content is buffered as preamble
    IN_SECTION  -- a section is open but it has no current policy
    IN_POLICY   -- a policy inside the current section receives content

Content lines are buffered and attached to a policy when it is closed. The
builder never formats; ``content_formatter.format_structure`` does that as a
separate stage.
"""
from __future__ import annotations

import enum
from typing import Iterable, List, Optional

from manual_import.classifier import GENERIC, LineKind, PatternSet, parse_header
from manual_import.models.structure import (
    DEFAULT_POLICY_TITLE,
    DEFAULT_SECTION_TITLE,
    PolicyDraft,
    SectionDraft,
    Structure,
)


class BuilderState(enum.Enum):
    NO_SECTION = "no_section"
    IN_SECTION = "in_section"
    IN_POLICY = "in_policy"


class StructureBuilder:
    def __init__(self, title: str, *, patterns: PatternSet = GENERIC) -> None:
        self.patterns = patterns
        self.structure = Structure(title=title)
        self.state = BuilderState.NO_SECTION
        self._section: Optional[SectionDraft] = None
        self._policy: Optional[PolicyDraft] = None
        self._buffer: List[str] = []
        self._previous_line: Optional[str] = None

    def feed(self, line: str) -> None:
        kind, title = parse_header(
            line,
            self._previous_line,
            section_open=self._section is not None,
            patterns=self.patterns,
        )
        self._previous_line = line

        if kind is LineKind.SECTION_HEADER:
            self._open_section(title)
        elif kind is LineKind.POLICY_HEADER:
            self._open_policy(title)
        elif line.strip() or self._buffer:
            self._buffer.append(line.rstrip())

    def finish(self) -> Structure:
        self._close_policy()
        self._close_section()
        if not self.structure.sections:
            # Header-less input: the whole document becomes one policy.
            policy = PolicyDraft(title=DEFAULT_POLICY_TITLE, lines=self._take_buffer())
            self.structure.sections.append(
                SectionDraft(title=DEFAULT_SECTION_TITLE, policies=[policy])
            )
        return self.structure

    def _open_section(self, title: str) -> None:
        self._close_policy()
        self._close_section()
        self._section = SectionDraft(title=title)
        self.structure.sections.append(self._section)
        self.state = BuilderState.IN_SECTION

    def _open_policy(self, title: str) -> None:
        self._close_policy()
        if self._section is None:
            self._section = SectionDraft(title=DEFAULT_SECTION_TITLE)
            self.structure.sections.append(self._section)
        # Lines buffered before this header (preamble or section intro)
        # lead the new policy's content.
        self._policy = PolicyDraft(title=title, lines=self._take_buffer())
        self._section.policies.append(self._policy)
        self.state = BuilderState.IN_POLICY

    def _close_policy(self) -> None:
        if self._policy is None:
            return
        self._policy.lines.extend(self._take_buffer())
        self._policy = None
        self.state = BuilderState.IN_SECTION

    def _close_section(self) -> None:
        if self._section is None:
            return
        if _has_text(self._buffer):
            self._section.policies.append(
                PolicyDraft(title=DEFAULT_POLICY_TITLE, lines=self._take_buffer())
            )
        self._section = None
        self.state = BuilderState.NO_SECTION

    def _take_buffer(self) -> List[str]:
        lines = self._buffer
        self._buffer = []
        while lines and not lines[-1].strip():
            lines.pop()
        return lines


def build_structure(
    lines: Iterable[str], *, title: str, patterns: PatternSet = GENERIC,
) -> Structure:
    builder = StructureBuilder(title, patterns=patterns)
    for line in lines:
        builder.feed(line)
    return builder.finish()


def _has_text(lines: List[str]) -> bool:
    return any(line.strip() for line in lines)

from __future__ import annotations

import html
import re
from typing import List, Sequence

from manual_import.models.structure import Structure

PLACEHOLDER_HTML = "<p>Content pending review.</p>"

_LIST_MARKER_RE = re.compile(r"^(?:[-*•–]|[A-Za-z]\.|\d+\))\s+")
_WHITESPACE_RE = re.compile(r"\s+")
_KEY_VALUE_LIMIT = 50
_HEADING_MAX_LENGTH = 49


def split_paragraphs(lines: Sequence[str]) -> List[List[str]]:
    """Group raw lines into paragraphs separated by blank lines.

    A line that starts with a list marker always opens a new group, so a run
    of ``- item`` lines without blank lines between them yields one group per
    item. Lines are returned stripped.
    """
    groups: List[List[str]] = []
    current: List[str] = []
    for line in lines:
        stripped = line.strip()
        if not stripped:
            if current:
                groups.append(current)
                current = []
            continue
        if current and _LIST_MARKER_RE.match(stripped):
            groups.append(current)
            current = []
        current.append(stripped)
    if current:
        groups.append(current)
    return groups


def render_paragraphs(groups: Sequence[Sequence[str]]) -> str:
    parts: List[str] = []
    in_list = False
    for group in groups:
        text = _WHITESPACE_RE.sub(" ", " ".join(group)).strip()
        if not text:
            continue

        marker = _LIST_MARKER_RE.match(text)
        if marker:
            if not in_list:
                parts.append("<ul>")
                in_list = True
            parts.append(f"<li>{_escape(text[marker.end():])}</li>")
            continue

        if in_list:
            parts.append("</ul>")
            in_list = False
        parts.append(_render_block(text))

    if in_list:
        parts.append("</ul>")
    return "".join(parts)


def format_content(lines: Sequence[str]) -> str:
    """Convert buffered content lines to HTML, never returning an empty string."""
    return render_paragraphs(split_paragraphs(lines)) or PLACEHOLDER_HTML


def format_structure(structure: Structure) -> Structure:
    """Fill ``content_html`` of every policy from its buffered lines."""
    for section in structure.sections:
        for policy in section.policies:
            policy.content_html = format_content(policy.lines)
    return structure


def _render_block(text: str) -> str:
    if _is_heading(text):
        return f"<h4>{_escape(text)}</h4>"

    colon = text.find(":")
    if 0 < colon < _KEY_VALUE_LIMIT:
        key = text[:colon].strip()
        value = text[colon + 1:].strip()
        if key and value:
            return f"<p><strong>{_escape(key)}:</strong> {_escape(value)}</p>"

    return f"<p>{_escape(text)}</p>"


def _is_heading(text: str) -> bool:
    return (
        2 < len(text) <= _HEADING_MAX_LENGTH
        and text == text.upper()
        and any(c.isalpha() for c in text)
    )


def _escape(text: str) -> str:
    return html.escape(text, quote=False)

from __future__ import annotations

import re

import markdownify

_HEADING_RE = re.compile(r"^(#{1,6})\s")


def html_to_markdown(html: str, heading_level: int = 4) -> str:
    """Convert policy HTML to Markdown with its top heading at *heading_level*."""
    if not html:
        return ""
    md: str = markdownify.markdownify(html, heading_style="ATX", bullets="-")
    md = md.replace("\u00a0", " ")
    md = "\n".join(line.rstrip() for line in md.splitlines())
    while "\n\n\n" in md:
        md = md.replace("\n\n\n", "\n\n")
    return normalize_headings(md.strip(), target_min=heading_level)


def shift_headings(md: str, delta: int) -> str:
    """Shift all markdown heading levels by *delta*, clamped to 1-6."""
    if delta == 0:
        return md

    def _shift(m: re.Match) -> str:  # type: ignore[type-arg]
        new_level = max(1, min(6, len(m.group(1)) + delta))
        return "#" * new_level + " "

    return "\n".join(_HEADING_RE.sub(_shift, line) for line in md.splitlines())


def normalize_headings(md: str, target_min: int = 4) -> str:
    """Shift headings so the highest one sits at *target_min*.

    Policy bodies are nested under ``##`` section and ``###`` policy headings in
    the preview, so their own headings start at level 4.
    """
    levels = [len(m.group(1)) for m in map(_HEADING_RE.match, md.splitlines()) if m]
    if not levels:
        return md
    return shift_headings(md, target_min - min(levels))

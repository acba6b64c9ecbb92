from __future__ import annotations

import re
from typing import Iterable

_EXCESS_BLANK_LINES_RE = re.compile(r"\n{3,}")
_RUN_IN_HEADING_RE = re.compile(r"(?<=\S)[ \t]+(?=\d+\.\d+(?:\.\d+)?[ \t]+[A-Z])")


def normalize_text(text: str) -> str:
    """Normalise line endings, trailing whitespace and blank-line runs."""
    text = text.replace("\r\n", "\n").replace("\r", "\n").lstrip("\ufeff")
    text = "\n".join(line.rstrip() for line in text.split("\n"))
    text = _EXCESS_BLANK_LINES_RE.sub("\n\n", text)
    return text.strip("\n")


def strip_watermarks(text: str, phrases: Iterable[str]) -> str:
    """Remove repeated export watermarks such as ``EXPORTED BY: ...``."""
    for phrase in phrases:
        if not phrase:
            continue
        text = re.sub(f"(?:{re.escape(phrase)})+", "", text)
    return text


def split_run_in_headings(text: str) -> str:
    """Start a new paragraph before numbered headings glued onto prose.

    PDF text extraction often loses the break before ``2.1 Purpose``; this
    puts it back so the classifier sees the heading on its own line.
    """
    return _RUN_IN_HEADING_RE.sub("\n\n", text)

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePath
from typing import Optional

from manual_import.exceptions import TooLargeError, UnsupportedTypeError

DOCX = "docx"
PDF = "pdf"

_MEDIA_TYPES = {
    "application/pdf": PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DOCX,
}
_KNOWN_SUFFIX_RE = re.compile(r"\.(pdf|docx|txt)$", re.IGNORECASE)
_MEGABYTE = 1024 * 1024


@dataclass
class SizeLimits:
    max_docx_mb: float = 20.0
    max_pdf_mb: float = 50.0

    def max_bytes(self, source_type: str) -> int:
        mb = self.max_docx_mb if source_type == DOCX else self.max_pdf_mb
        return int(mb * _MEGABYTE)


@dataclass
class SourceDocument:
    """An uploaded document: raw payload plus what is known about its origin."""

    filename: str
    data: bytes
    media_type: Optional[str] = None
    source_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def stem(self) -> str:
        name = PurePath(self.filename).name
        previous = None
        while previous != name:
            previous = name
            name = _KNOWN_SUFFIX_RE.sub("", name)
        return name.strip()

    def resolve_source_type(self) -> str:
        if self.source_type:
            kind = self.source_type.strip().lower()
            if kind in (DOCX, PDF):
                return kind
        elif self.media_type:
            kind = _MEDIA_TYPES.get(self.media_type.split(";")[0].strip().lower())
            if kind:
                return kind
        else:
            suffix = PurePath(self.filename).suffix.lower().lstrip(".")
            if suffix in (DOCX, PDF):
                return suffix
        raise UnsupportedTypeError(
            f"Unsupported file type for {self.filename}. Only PDF and DOCX are accepted."
        )

    def validate(self, limits: SizeLimits) -> str:
        """Check type and size; return the resolved source type."""
        kind = self.resolve_source_type()
        max_bytes = limits.max_bytes(kind)
        if self.size > max_bytes:
            raise TooLargeError(
                f"File too large. Max size is {round(max_bytes / _MEGABYTE)} MB for this type."
            )
        return kind

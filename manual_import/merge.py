from __future__ import annotations

import re
from typing import List, Sequence

from manual_import.importer import DocumentImporter
from manual_import.models.document import SourceDocument
from manual_import.models.structure import ImportOptions, Structure

MERGED_MANUAL_TITLE = "Merged Manual"

_PART_RE = re.compile(r"part[\s_-]*(\d+)", re.IGNORECASE)
_PART_TOKEN_RE = re.compile(r"[\s_-]*part[\s_-]*\d+", re.IGNORECASE)


def part_number(name: str) -> int:
    """The N of an embedded ``partN`` token, 0 when there is none."""
    match = _PART_RE.search(name)
    return int(match.group(1)) if match else 0


def order_by_part(documents: Sequence[SourceDocument]) -> List[SourceDocument]:
    return sorted(documents, key=lambda d: part_number(d.filename))


def merged_title(documents: Sequence[SourceDocument], options: ImportOptions) -> str:
    if options.manual_title:
        return options.manual_title
    if documents:
        title = _PART_TOKEN_RE.sub("", documents[0].stem).strip(" _-")
        if title:
            return title
    return MERGED_MANUAL_TITLE


def merge_documents(
    importer: DocumentImporter,
    documents: Sequence[SourceDocument],
    options: ImportOptions,
) -> Structure:
    """Build one structure from several parts, in ``partN`` order.

    Each part is parsed on its own; the resulting sections are concatenated and
    remember which part they came from in their description.
    """
    ordered = order_by_part(documents)
    merged = Structure(title=merged_title(ordered, options))
    for position, document in enumerate(ordered, start=1):
        part = importer.build(document, options)
        label = part_number(document.filename) or position
        for section in part.sections:
            if not section.description:
                section.description = f"From Part {label} of the original documentation"
            merged.sections.append(section)
    return merged

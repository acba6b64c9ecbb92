from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_SECTION_TITLE = "General Content"
DEFAULT_POLICY_TITLE = "Imported Content"
DEFAULT_MANUAL_TITLE = "Imported Manual"
DEFAULT_MANUAL_DESCRIPTION = "Imported via document import"


@dataclass
class PolicyDraft:
    title: str
    lines: List[str] = field(default_factory=list)
    content_html: str = ""


@dataclass
class SectionDraft:
    title: str
    description: str = ""
    policies: List[PolicyDraft] = field(default_factory=list)


@dataclass
class Structure:
    """Transient manual tree produced by a preview and consumed by a commit."""

    title: str
    description: str = DEFAULT_MANUAL_DESCRIPTION
    sections: List[SectionDraft] = field(default_factory=list)

    @property
    def section_count(self) -> int:
        return len(self.sections)

    @property
    def policy_count(self) -> int:
        return sum(len(section.policies) for section in self.sections)

    def outline(self) -> List[Dict[str, Any]]:
        """Titles and formatted content, in order, without raw line buffers."""
        return [
            {
                "title": section.title,
                "policies": [
                    {"title": policy.title, "contentHtml": policy.content_html}
                    for policy in section.policies
                ],
            }
            for section in self.sections
        ]

    def to_preview_dict(self) -> Dict[str, Any]:
        return {"manualTitle": self.title, "sections": self.outline()}


@dataclass
class ImportOptions:
    granularity: str = "h2"
    manual_title: Optional[str] = None
    watermarks: tuple = ()
    split_run_in_headings: bool = False

    def __post_init__(self) -> None:
        # Only DOCX decoding upstream distinguishes h2/h3; anything else means h2.
        if self.granularity != "h3":
            self.granularity = "h2"
        if self.manual_title is not None:
            self.manual_title = self.manual_title.strip() or None
        self.watermarks = tuple(w for w in self.watermarks if w)

from __future__ import annotations

from typing import Any, Dict, List, Optional

import yaml

from manual_import.formatters.base import BaseFormatter
from manual_import.html_converter import html_to_markdown


class MarkdownFormatter(BaseFormatter):
    """Renders an import preview as a reviewable Markdown outline."""

    def render(self, data: Any) -> str:
        if not isinstance(data, dict):
            return str(data)

        preview = data.get("preview")
        if not isinstance(preview, dict):
            frontmatter = {k: v for k, v in data.items() if k != "title"}
            return self.render_document(str(data.get("title", "")), "", frontmatter or None)

        sections = preview.get("sections", [])
        frontmatter: Dict[str, Any] = {
            "sections": len(sections),
            "policies": sum(len(s.get("policies", [])) for s in sections),
        }
        if data.get("message"):
            frontmatter["message"] = data["message"]
        return self.render_document(
            str(preview.get("manualTitle", "")),
            self._render_sections(sections),
            frontmatter,
        )

    @classmethod
    def render_document(
        cls,
        title: str,
        body: str,
        frontmatter: Optional[Dict[str, Any]] = None,
    ) -> str:
        parts = []
        if frontmatter:
            fm_text = yaml.dump(
                frontmatter,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            ).rstrip("\n")
            parts.append(f"---\n{fm_text}\n---\n")
        if title:
            parts.append(f"# {title}\n")
        if body:
            parts.append(body.rstrip("\n") + "\n")
        return "\n".join(parts)

    @staticmethod
    def _render_sections(sections: List[Dict[str, Any]]) -> str:
        blocks: List[str] = []
        for section in sections:
            blocks.append(f"## {section.get('title', '')}")
            for policy in section.get("policies", []):
                blocks.append(f"### {policy.get('title', '')}")
                content = html_to_markdown(policy.get("contentHtml", ""))
                if content:
                    blocks.append(content)
        return "\n\n".join(blocks)

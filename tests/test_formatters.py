from __future__ import annotations

import json
from pathlib import Path

import yaml

from manual_import.formatters.json_formatter import JsonFormatter
from manual_import.formatters.markdown_formatter import MarkdownFormatter
from manual_import.formatters.yaml_formatter import YamlFormatter

PREVIEW = {
    "preview": {
        "manualTitle": "Ops Manual",
        "sections": [
            {
                "title": "General",
                "policies": [
                    {"title": "Purpose", "contentHtml": "<p>This manual defines scope.</p>"},
                    {"title": "Roles", "contentHtml": "<ul><li>Pilot</li><li>Observer</li></ul>"},
                ],
            },
            {"title": "Operations", "policies": []},
        ],
    },
    "message": "Dry run successful",
}


class TestJsonFormatter:
    def test_write_and_parse_back(self, tmp_path: Path) -> None:
        path = tmp_path / "preview.json"
        JsonFormatter().write(PREVIEW, path)
        assert json.loads(path.read_text(encoding="utf-8")) == PREVIEW

    def test_no_ascii_escape_and_trailing_newline(self) -> None:
        rendered = JsonFormatter().render({"title": "Zuständigkeiten"})
        assert "Zuständigkeiten" in rendered
        assert rendered.endswith("\n")


class TestYamlFormatter:
    def test_keeps_key_order(self) -> None:
        rendered = YamlFormatter().render({"message": "Import completed", "manualId": 4})
        assert rendered == "message: Import completed\nmanualId: 4\n"

    def test_parse_back(self) -> None:
        assert yaml.safe_load(YamlFormatter().render(PREVIEW)) == PREVIEW


class TestMarkdownFormatter:
    def test_preview_frontmatter(self) -> None:
        result = MarkdownFormatter().render(PREVIEW)
        assert result.startswith("---\n")
        frontmatter = yaml.safe_load(result.split("---\n")[1])
        assert frontmatter == {"sections": 2, "policies": 2, "message": "Dry run successful"}

    def test_preview_outline(self) -> None:
        result = MarkdownFormatter().render(PREVIEW)
        assert "# Ops Manual\n" in result
        assert "## General" in result
        assert "### Purpose\n\nThis manual defines scope." in result
        assert "- Pilot" in result
        assert result.index("## General") < result.index("### Roles") < result.index("## Operations")
        assert result.endswith("\n")

    def test_plain_response(self) -> None:
        result = MarkdownFormatter().render({"message": "Import completed", "manualId": 4})
        assert "message: Import completed" in result
        assert "manualId: 4" in result
        assert "#" not in result

    def test_render_document_without_frontmatter(self) -> None:
        result = MarkdownFormatter.render_document(title="Title", body="Body text.")
        assert "---" not in result
        assert result == "# Title\n\nBody text.\n"

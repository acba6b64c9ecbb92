from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional, Sequence

from manual_import.commands.base import BaseCommand
from manual_import.exceptions import DecodeFailureError
from manual_import.importer import PREVIEW_MESSAGE, DocumentImporter
from manual_import.merge import merge_documents
from manual_import.models.document import SourceDocument
from manual_import.models.structure import ImportOptions, Structure


class PreviewCommand(BaseCommand):
    def __init__(
        self,
        importer: DocumentImporter,
        document: SourceDocument,
        options: ImportOptions,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.importer = importer
        self.document = document
        self.options = options

    def run(self) -> None:
        preview = self.importer.preview(self.document, self.options)
        self._log(
            f"Previewing {self.document.filename}... "
            f"{_summary(preview.structure)} (nothing saved)"
        )
        self._emit(preview.to_response())


class CommitCommand(BaseCommand):
    def __init__(
        self,
        importer: DocumentImporter,
        document: SourceDocument,
        options: ImportOptions,
        actor_id: int,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.importer = importer
        self.document = document
        self.options = options
        self.actor_id = actor_id

    def run(self) -> None:
        self._log(f"Importing {self.document.filename}...")
        result = self.importer.commit(self.document, self.options, self.actor_id)
        self._log(
            f"Importing {self.document.filename}... done "
            f"(manual {result.manual_id}: {_summary(result.structure)})"
        )
        if self.output_path is not None:
            self._emit(result.to_response())


class MergeCommand(BaseCommand):
    def __init__(
        self,
        importer: DocumentImporter,
        documents: Sequence[SourceDocument],
        options: ImportOptions,
        actor_id: int,
        *,
        dry_run: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.importer = importer
        self.documents = list(documents)
        self.options = options
        self.actor_id = actor_id
        self.dry_run = dry_run

    def run(self) -> None:
        names: List[str] = [d.filename for d in self.documents]
        self._log(f"Merging {len(names)} file(s): " + ", ".join(names))
        structure = merge_documents(self.importer, self.documents, self.options)

        if self.dry_run:
            self._log(f"Merged preview: {_summary(structure)} (nothing saved)")
            self._emit({"preview": structure.to_preview_dict(), "message": PREVIEW_MESSAGE})
            return

        result = self.importer.commit_structure(structure, self.actor_id)
        self._log(f"Merged into manual {result.manual_id}: {_summary(structure)}")
        if self.output_path is not None:
            self._emit(result.to_response())


def load_document(path: Path, source_type: Optional[str] = None) -> SourceDocument:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as exc:
        raise DecodeFailureError(f"Cannot read {path}: {exc.strerror}") from exc
    return SourceDocument(filename=path.name, data=data, source_type=source_type)


def _summary(structure: Structure) -> str:
    return f"{structure.section_count} sections, {structure.policy_count} policies"

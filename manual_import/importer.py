"""Two-phase document import: preview (dry run) and commit.

Both phases run the same pipeline, so a commit stores exactly the structure a
preview of the same file and options showed:

    decode -> cleanup -> classify + build -> format -> Structure
                                                        |-- preview: returned
                                                        '-- commit: persisted in one transaction

Jobs move ``UPLOADED -> PREVIEWED -> COMMITTED``; any failure moves them to
``FAILED``. Both end states are terminal.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from manual_import.classifier import GENERIC, PatternSet
from manual_import.cleanup import normalize_text, split_run_in_headings, strip_watermarks
from manual_import.content_formatter import format_structure
from manual_import.decoders.base import BaseDecoder
from manual_import.exceptions import (
    DecodeFailureError,
    ImportStateError,
    ManualImportError,
    PersistenceError,
)
from manual_import.models.document import SizeLimits, SourceDocument
from manual_import.models.structure import DEFAULT_MANUAL_TITLE, ImportOptions, Structure
from manual_import.store.database import Store
from manual_import.store.mapper import persist
from manual_import.structure_builder import build_structure

PREVIEW_MESSAGE = "Dry run successful"
COMMIT_MESSAGE = "Import completed"


class ImportState(enum.Enum):
    UPLOADED = "uploaded"
    PREVIEWED = "previewed"
    COMMITTED = "committed"
    FAILED = "failed"


_TRANSITIONS = {
    ImportState.UPLOADED: {ImportState.PREVIEWED, ImportState.FAILED},
    ImportState.PREVIEWED: {ImportState.COMMITTED, ImportState.FAILED},
    ImportState.COMMITTED: set(),
    ImportState.FAILED: set(),
}


@dataclass
class ImportJob:
    name: str
    state: ImportState = ImportState.UPLOADED
    structure: Optional[Structure] = None
    manual_id: Optional[int] = None
    error: Optional[ManualImportError] = None
    history: List[ImportState] = field(default_factory=list)

    def advance(self, state: ImportState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise ImportStateError(
                f"Import of {self.name} cannot move from {self.state.value} to {state.value}."
            )
        self.history.append(self.state)
        self.state = state

    def fail(self, error: ManualImportError) -> None:
        self.error = error
        if self.state not in (ImportState.COMMITTED, ImportState.FAILED):
            self.advance(ImportState.FAILED)


@dataclass
class ImportPreview:
    job: ImportJob
    structure: Structure

    @property
    def section_count(self) -> int:
        return self.structure.section_count

    @property
    def policy_count(self) -> int:
        return self.structure.policy_count

    def to_response(self) -> Dict[str, Any]:
        return {"preview": self.structure.to_preview_dict(), "message": PREVIEW_MESSAGE}


@dataclass
class CommitResult:
    job: ImportJob
    manual_id: int
    structure: Structure

    def to_response(self) -> Dict[str, Any]:
        return {"message": COMMIT_MESSAGE, "manualId": self.manual_id}


class DocumentImporter:
    def __init__(
        self,
        decoder: BaseDecoder,
        store: Optional[Store] = None,
        *,
        limits: Optional[SizeLimits] = None,
        patterns: PatternSet = GENERIC,
    ) -> None:
        self.decoder = decoder
        self.store = store
        self.limits = limits or SizeLimits()
        self.patterns = patterns

    def preview(self, document: SourceDocument, options: ImportOptions) -> ImportPreview:
        job = ImportJob(name=document.filename)
        structure = self._run_preview(job, document, options)
        return ImportPreview(job=job, structure=structure)

    def commit(
        self, document: SourceDocument, options: ImportOptions, actor_id: int,
    ) -> CommitResult:
        job = ImportJob(name=document.filename)
        structure = self._run_preview(job, document, options)
        return self._persist(job, structure, actor_id)

    def commit_structure(self, structure: Structure, actor_id: int) -> CommitResult:
        """Persist a structure that was already built, e.g. a merged one."""
        job = ImportJob(name=structure.title, state=ImportState.PREVIEWED, structure=structure)
        return self._persist(job, structure, actor_id)

    def build(self, document: SourceDocument, options: ImportOptions) -> Structure:
        """Validate, decode and structure *document* without tracking a job."""
        source_type = document.validate(self.limits)
        text = self.decoder.decode(document, source_type)
        if not text or not text.strip():
            raise DecodeFailureError(
                f"No text could be extracted from {document.filename}."
            )
        text = self._clean(text, options)
        structure = build_structure(
            text.split("\n"),
            title=manual_title(document, options),
            patterns=self.patterns,
        )
        return format_structure(structure)

    def _run_preview(
        self, job: ImportJob, document: SourceDocument, options: ImportOptions,
    ) -> Structure:
        try:
            structure = self.build(document, options)
        except ManualImportError as exc:
            job.fail(exc)
            raise
        job.structure = structure
        job.advance(ImportState.PREVIEWED)
        return structure

    def _persist(self, job: ImportJob, structure: Structure, actor_id: int) -> CommitResult:
        if self.store is None:
            error = PersistenceError("No database configured; cannot commit the import.")
            job.fail(error)
            raise error
        try:
            manual_id = self.store.with_transaction(
                lambda session: persist(session, structure, actor_id)
            )
        except ManualImportError as exc:
            job.fail(exc)
            raise
        job.manual_id = manual_id
        job.advance(ImportState.COMMITTED)
        return CommitResult(job=job, manual_id=manual_id, structure=structure)

    @staticmethod
    def _clean(text: str, options: ImportOptions) -> str:
        if options.watermarks:
            text = strip_watermarks(text, options.watermarks)
        text = normalize_text(text)
        if options.split_run_in_headings:
            text = split_run_in_headings(text)
        return text


def manual_title(document: SourceDocument, options: ImportOptions) -> str:
    if options.manual_title:
        return options.manual_title
    return document.stem or DEFAULT_MANUAL_TITLE

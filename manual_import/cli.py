from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any, Dict, Optional

from manual_import.classifier import get_pattern_set
from manual_import.commands.base import OUTPUT_FORMATS, BaseCommand
from manual_import.commands.importing import (
    CommitCommand,
    MergeCommand,
    PreviewCommand,
    load_document,
)
from manual_import.commands.snapshot import ExportSnapshotCommand, ImportSnapshotCommand
from manual_import.config import config_exists, read_config, write_config
from manual_import.decoders.base import BaseDecoder
from manual_import.decoders.text import PlainTextDecoder
from manual_import.decoders.tika import TikaDecoder
from manual_import.exceptions import ConfigError
from manual_import.importer import DocumentImporter
from manual_import.models.config import AppConfig
from manual_import.models.document import SizeLimits
from manual_import.models.structure import ImportOptions
from manual_import.store.database import Store
from manual_import.store.users import ensure_user

DEFAULT_OWNER = "import-admin"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="manual-import",
        description="Import policy documents into compliance manuals.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--init",
        metavar="DATABASE_URL",
        help="Initialize configuration and database schema.",
    )
    group.add_argument(
        "--preview", metavar="FILE", type=Path,
        help="Show the manual structure a document would produce (dry run).",
    )
    group.add_argument(
        "--commit", metavar="FILE", type=Path,
        help="Import a document as a new draft manual.",
    )
    group.add_argument(
        "--merge", metavar="FILE", type=Path, nargs="+",
        help="Merge several document parts (ordered by partN) into one manual.",
    )
    group.add_argument(
        "--export-snapshot", metavar="PATH", type=Path,
        help="Export all manuals to a JSON or YAML snapshot.",
    )
    group.add_argument(
        "--import-snapshot", metavar="PATH", type=Path,
        help="Replay a snapshot into the configured database.",
    )
    parser.add_argument("--title", help="Manual title (defaults to the file name).")
    parser.add_argument(
        "--granularity", choices=("h2", "h3"), default="h2",
        help="Heading level that becomes a section in DOCX sources.",
    )
    parser.add_argument(
        "--source-type", choices=("docx", "pdf"),
        help="Format the text was extracted from, when the file name does not say.",
    )
    parser.add_argument(
        "--patterns", help="Heading pattern set: generic or decimal.",
    )
    parser.add_argument(
        "--watermark", action="append", default=[], metavar="TEXT",
        help="Remove repeated watermark text before parsing (repeatable).",
    )
    parser.add_argument(
        "--split-headings", action="store_true",
        help="Break numbered headings that run into the preceding text.",
    )
    parser.add_argument(
        "--format", dest="output_format", choices=OUTPUT_FORMATS, default="markdown",
        help="Output format for previews.",
    )
    parser.add_argument("--output", type=Path, help="Write output to a file.")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="With --merge: preview the merged manual without saving it.",
    )
    parser.add_argument(
        "--force", action="store_true",
        help="Overwrite existing files without confirmation.",
    )
    return parser


def _run_init(database_url: str) -> None:
    owner = input(
        f"Enter the username that will own imported manuals [{DEFAULT_OWNER}]: "
    ).strip() or DEFAULT_OWNER
    decoder_url = input(
        "Enter the text extraction service URL "
        "(leave empty if documents are already plain text): "
    ).strip()

    store = Store(database_url)
    store.create_schema()
    actor_id = store.with_transaction(lambda session: ensure_user(session, owner).id)
    store.dispose()

    config = AppConfig(
        database_url=database_url,
        actor_id=actor_id,
        decoder_url=decoder_url,
    )
    write_config(Path.cwd(), config)

    print("Configuration saved to .manual-import.ini")
    print(f"Database ready; imports will be owned by {owner} (user {actor_id})")


def _build_decoder(config: Optional[AppConfig]) -> BaseDecoder:
    if config is not None and config.decoder_url:
        return TikaDecoder(config.decoder_url, timeout=config.decoder_timeout)
    return PlainTextDecoder()


def _build_importer(
    args: argparse.Namespace, config: Optional[AppConfig], store: Optional[Store],
) -> DocumentImporter:
    limits = SizeLimits()
    pattern_name = args.patterns or "generic"
    if config is not None:
        limits = SizeLimits(max_docx_mb=config.max_docx_mb, max_pdf_mb=config.max_pdf_mb)
        pattern_name = args.patterns or config.patterns
    return DocumentImporter(
        _build_decoder(config),
        store,
        limits=limits,
        patterns=get_pattern_set(pattern_name),
    )


def _build_options(args: argparse.Namespace, config: Optional[AppConfig]) -> ImportOptions:
    watermarks = tuple(config.watermarks) if config is not None else ()
    return ImportOptions(
        granularity=args.granularity,
        manual_title=args.title,
        watermarks=watermarks + tuple(args.watermark),
        split_run_in_headings=args.split_headings,
    )


def _run_command(args: argparse.Namespace) -> None:
    cwd = Path.cwd()
    output_kwargs: Dict[str, Any] = {
        "output_format": args.output_format,
        "output_path": args.output,
        "force": args.force,
    }

    command: BaseCommand
    if args.preview:
        # A preview never touches the database, so configuration is optional.
        config = read_config(cwd) if config_exists(cwd) else None
        command = PreviewCommand(
            _build_importer(args, config, None),
            load_document(args.preview, args.source_type),
            _build_options(args, config),
            **output_kwargs,
        )
        command.run()
        return

    config = read_config(cwd)
    store = Store(config.database_url)
    try:
        if args.commit:
            command = CommitCommand(
                _build_importer(args, config, store),
                load_document(args.commit, args.source_type),
                _build_options(args, config),
                config.actor_id,
                **output_kwargs,
            )
        elif args.merge:
            command = MergeCommand(
                _build_importer(args, config, store),
                [load_document(path, args.source_type) for path in args.merge],
                _build_options(args, config),
                config.actor_id,
                dry_run=args.dry_run,
                **output_kwargs,
            )
        elif args.export_snapshot:
            command = ExportSnapshotCommand(store, args.export_snapshot, force=args.force)
        elif args.import_snapshot:
            command = ImportSnapshotCommand(store, args.import_snapshot)
        else:
            raise ConfigError("No command given.")
        command.run()
    finally:
        store.dispose()


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    if args.init:
        _run_init(args.init)
    elif args.preview or args.commit or args.merge or args.export_snapshot or args.import_snapshot:
        _run_command(args)
    else:
        parser.print_help()

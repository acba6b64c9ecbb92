from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from manual_import.commands.base import BaseCommand
from manual_import.exceptions import PersistenceError
from manual_import.store.database import Store
from manual_import.store.snapshot import export_snapshot, import_snapshot

_YAML_SUFFIXES = (".yaml", ".yml")


class ExportSnapshotCommand(BaseCommand):
    def __init__(self, store: Store, path: Path, **kwargs: Any) -> None:
        output_format = "yaml" if path.suffix.lower() in _YAML_SUFFIXES else "json"
        super().__init__(output_format=output_format, output_path=path, **kwargs)
        self.store = store

    def run(self) -> None:
        self._log("Exporting snapshot...")
        snapshot = export_snapshot(self.store)
        self._emit(snapshot)
        self._log(
            "Exporting snapshot... done "
            f"({len(snapshot['manuals'])} manuals, {len(snapshot['sections'])} sections, "
            f"{len(snapshot['policies'])} policies, "
            f"{len(snapshot['policyVersions'])} policy versions)"
        )


class ImportSnapshotCommand(BaseCommand):
    def __init__(self, store: Store, path: Path, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.store = store
        self.path = path

    def run(self) -> None:
        snapshot = _read_snapshot(self.path)
        exported = snapshot.get("exportDate", "unknown")
        self._log(f"Importing snapshot from {self.path.name} (exported {exported})...")
        counts = import_snapshot(self.store, snapshot)
        self._log(
            "Importing snapshot... done "
            f"({counts.manuals} manuals, {counts.sections} sections, "
            f"{counts.policies} policies, {counts.policy_versions} policy versions)"
        )


def _read_snapshot(path: Path) -> Dict[str, Any]:
    if not path.is_file():
        raise PersistenceError(f"Snapshot file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in _YAML_SUFFIXES:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (ValueError, yaml.YAMLError) as exc:
        raise PersistenceError(f"Cannot read snapshot {path.name}: {exc}") from exc
    if not isinstance(data, dict):
        raise PersistenceError(f"Invalid snapshot {path.name}: expected a mapping of tables.")
    return data

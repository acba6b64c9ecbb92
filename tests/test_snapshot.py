from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Tuple

import pytest
from sqlalchemy import select

from manual_import.commands.snapshot import ExportSnapshotCommand, ImportSnapshotCommand
from manual_import.content_formatter import format_structure
from manual_import.exceptions import PersistenceError
from manual_import.store.database import Store
from manual_import.store.mapper import persist
from manual_import.store.models import Manual, Policy, PolicyVersion, User
from manual_import.store.snapshot import export_snapshot, import_snapshot
from manual_import.store.users import MIGRATION_USERNAME, ensure_user
from manual_import.structure_builder import build_structure

SAMPLE = (
    "1.0 General\n\n1.1 Purpose\nThis manual defines scope.\n\n"
    "1.2 Applicability\nApplies to all staff.\n\n"
    "2.0 Operations\n2.1 Flight Planning\nPlan every flight."
)


def _make_store(tmp_path: Path, name: str) -> Store:
    store = Store(f"sqlite:///{tmp_path / name}")
    store.create_schema()
    return store


def _populated_store(tmp_path: Path) -> Tuple[Store, int]:
    store = _make_store(tmp_path, "source.db")
    actor_id = store.with_transaction(lambda session: ensure_user(session, "importer").id)
    structure = format_structure(build_structure(SAMPLE.split("\n"), title="Ops Manual"))
    manual_id = store.with_transaction(lambda session: persist(session, structure, actor_id))
    return store, manual_id


def _outline(store: Store) -> Dict[str, Any]:
    with store.session() as session:
        return {
            manual.title: [
                (
                    section.title,
                    section.order_index,
                    [
                        (
                            policy.title,
                            policy.order_index,
                            session.get(PolicyVersion, policy.current_version_id).body_content,
                        )
                        for policy in section.policies
                    ],
                )
                for section in manual.sections
            ]
            for manual in session.scalars(select(Manual))
        }


class TestExport:
    def test_tables_and_counts(self, tmp_path: Path) -> None:
        store, _ = _populated_store(tmp_path)
        snapshot = export_snapshot(store)
        assert "exportDate" in snapshot
        assert len(snapshot["manuals"]) == 1
        assert len(snapshot["sections"]) == 2
        assert len(snapshot["policies"]) == 3
        assert len(snapshot["policyVersions"]) == 3

    def test_records_use_camel_case(self, tmp_path: Path) -> None:
        store, manual_id = _populated_store(tmp_path)
        snapshot = export_snapshot(store)
        section = snapshot["sections"][0]
        assert section["manualId"] == manual_id
        assert section["orderIndex"] == 0
        policy = snapshot["policies"][0]
        assert set(policy) >= {"sectionId", "currentVersionId", "createdById", "createdAt"}
        version = snapshot["policyVersions"][0]
        assert version["versionNumber"] == 1
        assert isinstance(version["effectiveDate"], str)

    def test_json_serialisable(self, tmp_path: Path) -> None:
        store, _ = _populated_store(tmp_path)
        json.dumps(export_snapshot(store))

    def test_missing_schema_raises_persistence_error(self, tmp_path: Path) -> None:
        store = Store(f"sqlite:///{tmp_path / 'empty.db'}")
        with pytest.raises(PersistenceError, match="Cannot read manuals"):
            export_snapshot(store)
        store.dispose()


class TestImport:
    def test_round_trip_into_empty_store(self, tmp_path: Path) -> None:
        source, _ = _populated_store(tmp_path)
        target = _make_store(tmp_path, "target.db")
        counts = import_snapshot(target, export_snapshot(source))

        assert (counts.manuals, counts.sections, counts.policies, counts.policy_versions) == (1, 2, 3, 3)
        assert _outline(target) == _outline(source)

    def test_current_versions_are_remapped(self, tmp_path: Path) -> None:
        source, _ = _populated_store(tmp_path)
        target = _make_store(tmp_path, "target.db")
        # Occupy low ids so the replayed rows cannot keep their old ones.
        target.with_transaction(
            lambda session: persist(
                session,
                format_structure(build_structure(["1.1 Filler", "Text."], title="Filler")),
                ensure_user(session, "someone").id,
            )
        )
        import_snapshot(target, export_snapshot(source))

        with target.session() as session:
            for policy in session.scalars(select(Policy)):
                version = session.get(PolicyVersion, policy.current_version_id)
                assert version is not None
                assert version.policy_id == policy.id

    def test_missing_authors_fall_back_to_migration_admin(self, tmp_path: Path) -> None:
        source, _ = _populated_store(tmp_path)
        target = _make_store(tmp_path, "target.db")
        snapshot = export_snapshot(source)
        for record in snapshot["manuals"] + snapshot["policyVersions"]:
            record["createdById"] = 4242
            record["authorId"] = 4242
        import_snapshot(target, snapshot)

        with target.session() as session:
            admin = session.scalars(select(User).where(User.username == MIGRATION_USERNAME)).one()
            assert {v.author_id for v in session.scalars(select(PolicyVersion))} == {admin.id}

    def test_existing_admin_is_preferred(self, tmp_path: Path) -> None:
        source, _ = _populated_store(tmp_path)
        target = _make_store(tmp_path, "target.db")
        target.with_transaction(lambda session: ensure_user(session, "boss"))
        target.with_transaction(lambda session: ensure_user(session, "chief"))
        snapshot = export_snapshot(source)
        for record in snapshot["manuals"]:
            record["createdById"] = 4242
        import_snapshot(target, snapshot)

        with target.session() as session:
            manual = session.scalars(select(Manual)).one()
            boss = session.scalars(select(User).where(User.username == "boss")).one()
            assert manual.created_by_id == boss.id

    def test_invalid_table(self, tmp_path: Path) -> None:
        target = _make_store(tmp_path, "target.db")
        with pytest.raises(PersistenceError, match="must be a list"):
            import_snapshot(target, {"manuals": "nope"})

    def test_unknown_reference_rolls_back(self, tmp_path: Path) -> None:
        source, _ = _populated_store(tmp_path)
        target = _make_store(tmp_path, "target.db")
        snapshot = export_snapshot(source)
        snapshot["sections"][1]["manualId"] = 999
        with pytest.raises(PersistenceError, match="unknown manual 999"):
            import_snapshot(target, snapshot)
        with target.session() as session:
            assert session.scalars(select(Manual)).first() is None

    def test_missing_title_rejected(self, tmp_path: Path) -> None:
        target = _make_store(tmp_path, "target.db")
        with pytest.raises(PersistenceError, match="has no 'title'"):
            import_snapshot(target, {"manuals": [{"id": 1, "title": " "}]})


class TestSnapshotCommands:
    @pytest.mark.parametrize("filename", ["snapshot.json", "snapshot.yaml"])
    def test_export_then_import(
        self, tmp_path: Path, filename: str, capsys: pytest.CaptureFixture[str],
    ) -> None:
        source, _ = _populated_store(tmp_path)
        target = _make_store(tmp_path, "target.db")
        path = tmp_path / filename

        ExportSnapshotCommand(source, path).run()
        assert path.is_file()
        ImportSnapshotCommand(target, path).run()

        out = capsys.readouterr().out
        assert "1 manuals, 2 sections, 3 policies, 3 policy versions" in out
        assert f"Wrote {path}" in out
        assert _outline(target) == _outline(source)

    def test_export_format_follows_suffix(self, tmp_path: Path) -> None:
        source, _ = _populated_store(tmp_path)
        path = tmp_path / "snapshot.json"
        ExportSnapshotCommand(source, path).run()
        assert json.loads(path.read_text(encoding="utf-8"))["manuals"][0]["title"] == "Ops Manual"

    def test_import_missing_file(self, tmp_path: Path) -> None:
        target = _make_store(tmp_path, "target.db")
        with pytest.raises(PersistenceError, match="not found"):
            ImportSnapshotCommand(target, tmp_path / "missing.json").run()

    def test_import_malformed_file(self, tmp_path: Path) -> None:
        target = _make_store(tmp_path, "target.db")
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError, match="Cannot read snapshot"):
            ImportSnapshotCommand(target, path).run()

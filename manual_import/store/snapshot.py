"""Portable export and replay of every stored manual.

The snapshot is a plain dict (written as JSON or YAML by the CLI)::

    {"exportDate": ..., "manuals": [...], "sections": [...],
     "policies": [...], "policyVersions": [...]}

Importing replays inserts in foreign-key order into another store. Rows get
fresh ids there; every reference is remapped, and authors that do not exist in
the target store are replaced by its first admin.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from manual_import.exceptions import PersistenceError
from manual_import.store.database import Store
from manual_import.store.models import (
    STATUS_DRAFT,
    Manual,
    Policy,
    PolicyVersion,
    Section,
    User,
)
from manual_import.store.users import fallback_author

_TABLE_KEYS = ("manuals", "sections", "policies", "policyVersions")


@dataclass
class SnapshotCounts:
    manuals: int = 0
    sections: int = 0
    policies: int = 0
    policy_versions: int = 0


def export_snapshot(store: Store) -> Dict[str, Any]:
    try:
        with store.session() as session:
            return {
                "exportDate": datetime.now(timezone.utc).isoformat(),
                "manuals": [_manual_record(m) for m in _all(session, Manual)],
                "sections": [_section_record(s) for s in _all(session, Section)],
                "policies": [_policy_record(p) for p in _all(session, Policy)],
                "policyVersions": [_version_record(v) for v in _all(session, PolicyVersion)],
            }
    except SQLAlchemyError as exc:
        raise PersistenceError(f"Cannot read manuals for export: {exc}") from exc


def import_snapshot(store: Store, snapshot: Dict[str, Any]) -> SnapshotCounts:
    for key in _TABLE_KEYS:
        if not isinstance(snapshot.get(key, []), list):
            raise PersistenceError(f"Invalid snapshot: '{key}' must be a list of records.")
    return store.with_transaction(lambda session: _SnapshotReplay(session).run(snapshot))


class _SnapshotReplay:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.counts = SnapshotCounts()
        self._users: Dict[Any, int] = {}
        self._manuals: Dict[Any, int] = {}
        self._sections: Dict[Any, int] = {}
        self._policies: Dict[Any, Policy] = {}
        self._versions: Dict[Any, int] = {}
        self._current_versions: Dict[Any, Any] = {}

    def run(self, snapshot: Dict[str, Any]) -> SnapshotCounts:
        for record in snapshot.get("manuals", []):
            manual = Manual(
                title=_required(record, "title"),
                description=record.get("description"),
                status=record.get("status") or STATUS_DRAFT,
                created_by_id=self._user(record.get("createdById")),
                created_at=_parse_datetime(record.get("createdAt")),
                updated_at=_parse_datetime(record.get("updatedAt")),
            )
            self._manuals[record.get("id")] = self._insert(manual)
            self.counts.manuals += 1

        for record in snapshot.get("sections", []):
            section = Section(
                manual_id=self._resolve(self._manuals, record.get("manualId"), "manual"),
                title=_required(record, "title"),
                description=record.get("description"),
                order_index=int(record.get("orderIndex", 0)),
                created_by_id=self._user(record.get("createdById")),
                created_at=_parse_datetime(record.get("createdAt")),
                updated_at=_parse_datetime(record.get("updatedAt")),
            )
            self._sections[record.get("id")] = self._insert(section)
            self.counts.sections += 1

        for record in snapshot.get("policies", []):
            policy = Policy(
                section_id=self._resolve(self._sections, record.get("sectionId"), "section"),
                title=_required(record, "title"),
                status=record.get("status") or STATUS_DRAFT,
                order_index=int(record.get("orderIndex", 0)),
                created_by_id=self._user(record.get("createdById")),
                created_at=_parse_datetime(record.get("createdAt")),
                updated_at=_parse_datetime(record.get("updatedAt")),
            )
            self._insert(policy)
            self._policies[record.get("id")] = policy
            self._current_versions[record.get("id")] = record.get("currentVersionId")
            self.counts.policies += 1

        for record in snapshot.get("policyVersions", []):
            policy_id = record.get("policyId")
            if policy_id not in self._policies:
                raise PersistenceError(
                    f"Invalid snapshot: policy version {record.get('id')} "
                    f"references unknown policy {policy_id}."
                )
            version = PolicyVersion(
                policy_id=self._policies[policy_id].id,
                version_number=int(record.get("versionNumber", 1)),
                body_content=_required(record, "bodyContent"),
                effective_date=_parse_datetime(record.get("effectiveDate")),
                author_id=self._user(record.get("authorId")),
                change_summary=record.get("changeSummary"),
                created_at=_parse_datetime(record.get("createdAt")),
            )
            self._versions[record.get("id")] = self._insert(version)
            self.counts.policy_versions += 1

        for old_id, policy in self._policies.items():
            old_version = self._current_versions.get(old_id)
            if old_version is not None:
                policy.current_version_id = self._resolve(self._versions, old_version, "version")
        self.session.flush()
        return self.counts

    def _insert(self, row: Any) -> int:
        self.session.add(row)
        self.session.flush()
        return row.id

    def _user(self, user_id: Any) -> int:
        if user_id not in self._users:
            user = self.session.get(User, user_id) if user_id is not None else None
            self._users[user_id] = user.id if user is not None else fallback_author(self.session).id
        return self._users[user_id]

    @staticmethod
    def _resolve(mapping: Dict[Any, int], old_id: Any, kind: str) -> int:
        try:
            return mapping[old_id]
        except KeyError:
            raise PersistenceError(
                f"Invalid snapshot: reference to unknown {kind} {old_id}."
            ) from None


def _all(session: Session, model: Any) -> List[Any]:
    return list(session.scalars(select(model).order_by(model.id)))


def _manual_record(manual: Manual) -> Dict[str, Any]:
    return {
        "id": manual.id,
        "title": manual.title,
        "description": manual.description,
        "status": manual.status,
        "createdById": manual.created_by_id,
        "createdAt": _format_datetime(manual.created_at),
        "updatedAt": _format_datetime(manual.updated_at),
    }


def _section_record(section: Section) -> Dict[str, Any]:
    return {
        "id": section.id,
        "manualId": section.manual_id,
        "title": section.title,
        "description": section.description,
        "orderIndex": section.order_index,
        "createdById": section.created_by_id,
        "createdAt": _format_datetime(section.created_at),
        "updatedAt": _format_datetime(section.updated_at),
    }


def _policy_record(policy: Policy) -> Dict[str, Any]:
    return {
        "id": policy.id,
        "sectionId": policy.section_id,
        "title": policy.title,
        "status": policy.status,
        "orderIndex": policy.order_index,
        "currentVersionId": policy.current_version_id,
        "createdById": policy.created_by_id,
        "createdAt": _format_datetime(policy.created_at),
        "updatedAt": _format_datetime(policy.updated_at),
    }


def _version_record(version: PolicyVersion) -> Dict[str, Any]:
    return {
        "id": version.id,
        "policyId": version.policy_id,
        "versionNumber": version.version_number,
        "bodyContent": version.body_content,
        "effectiveDate": _format_datetime(version.effective_date),
        "authorId": version.author_id,
        "changeSummary": version.change_summary,
        "createdAt": _format_datetime(version.created_at),
    }


def _required(record: Dict[str, Any], key: str) -> Any:
    value = record.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise PersistenceError(f"Invalid snapshot: record {record.get('id')} has no '{key}'.")
    return value


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            # Older exports carry a trailing 'Z'.
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError as exc:
            raise PersistenceError(f"Invalid snapshot: bad timestamp '{value}'.") from exc
    return datetime.now(timezone.utc)

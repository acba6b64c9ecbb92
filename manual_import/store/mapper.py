"""Translate a ``Structure`` into manual, section, policy and version rows.

Writes happen in dependency order inside the caller's transaction:

    manual -> section[i] -> policy[j] -> policy_version (v1) -> policy.current_version_id

Nothing here commits. ``persist`` checks the cross-row invariants before it
returns and raises ``PersistenceError`` if one is broken, so the surrounding
transaction rolls back instead of exposing a half-written manual.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from manual_import.content_formatter import PLACEHOLDER_HTML
from manual_import.exceptions import PersistenceError
from manual_import.models.structure import (
    DEFAULT_MANUAL_TITLE,
    DEFAULT_POLICY_TITLE,
    DEFAULT_SECTION_TITLE,
    Structure,
)
from manual_import.store.models import (
    STATUS_DRAFT,
    Manual,
    Policy,
    PolicyVersion,
    Section,
)

FIRST_VERSION = 1


def persist(
    session: Session,
    structure: Structure,
    actor_id: int,
    *,
    effective_date: Optional[datetime] = None,
) -> int:
    effective = effective_date or datetime.now(timezone.utc)

    manual = Manual(
        title=structure.title.strip() or DEFAULT_MANUAL_TITLE,
        description=structure.description,
        status=STATUS_DRAFT,
        created_by_id=actor_id,
    )
    session.add(manual)
    session.flush()

    for section_index, section_draft in enumerate(structure.sections):
        section = Section(
            manual_id=manual.id,
            title=section_draft.title.strip() or DEFAULT_SECTION_TITLE,
            description=section_draft.description,
            order_index=section_index,
            created_by_id=actor_id,
        )
        session.add(section)
        session.flush()

        for policy_index, policy_draft in enumerate(section_draft.policies):
            policy = Policy(
                section_id=section.id,
                title=policy_draft.title.strip() or DEFAULT_POLICY_TITLE,
                status=STATUS_DRAFT,
                order_index=policy_index,
                created_by_id=actor_id,
            )
            session.add(policy)
            session.flush()

            version = PolicyVersion(
                policy_id=policy.id,
                version_number=FIRST_VERSION,
                body_content=policy_draft.content_html.strip() or PLACEHOLDER_HTML,
                effective_date=effective,
                author_id=actor_id,
            )
            session.add(version)
            session.flush()

            policy.current_version_id = version.id
            session.flush()

    problems = check_manual_integrity(session, manual.id)
    if problems:
        raise PersistenceError(
            "Import aborted, stored manual would be inconsistent: " + "; ".join(problems)
        )
    return manual.id


def check_manual_integrity(session: Session, manual_id: int) -> List[str]:
    """Return a description of every broken invariant for *manual_id*."""
    problems: List[str] = []
    sections = session.scalars(
        select(Section).where(Section.manual_id == manual_id).order_by(Section.order_index)
    ).all()

    section_indexes = [s.order_index for s in sections]
    if section_indexes != list(range(len(sections))):
        problems.append(f"section order {section_indexes} is not contiguous from 0")

    for section in sections:
        policies = session.scalars(
            select(Policy).where(Policy.section_id == section.id).order_by(Policy.order_index)
        ).all()
        policy_indexes = [p.order_index for p in policies]
        if policy_indexes != list(range(len(policies))):
            problems.append(
                f"policy order {policy_indexes} in section {section.id} is not contiguous from 0"
            )

        for policy in policies:
            if policy.current_version_id is None:
                problems.append(f"policy {policy.id} has no current version")
                continue
            version = session.get(PolicyVersion, policy.current_version_id)
            if version is None or version.policy_id != policy.id:
                problems.append(
                    f"policy {policy.id} points at version {policy.current_version_id} "
                    "that belongs to another policy"
                )
            elif not version.body_content.strip():
                problems.append(f"policy {policy.id} has an empty body")
    return problems

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from manual_import.store.models import ROLE_ADMIN, User

MIGRATION_USERNAME = "migration-admin"


def find_user(session: Session, username: str) -> Optional[User]:
    return session.scalars(select(User).where(User.username == username)).first()


def ensure_user(session: Session, username: str, role: str = ROLE_ADMIN) -> User:
    user = find_user(session, username)
    if user is None:
        user = User(username=username, role=role)
        session.add(user)
        session.flush()
    return user


def fallback_author(session: Session) -> User:
    """First admin in the store, creating a migration admin if there is none."""
    admin = session.scalars(
        select(User).where(User.role == ROLE_ADMIN).order_by(User.id)
    ).first()
    if admin is not None:
        return admin
    return ensure_user(session, MIGRATION_USERNAME, ROLE_ADMIN)

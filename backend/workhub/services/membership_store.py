"""Membership Store - compare-and-swap writes for workspace members and project roles.

WHAT:
    Loads a workspace (or project), applies an idempotent mutation to its
    membership document and commits. `Workspace` and `Project` carry a
    SQLAlchemy `version_id_col`, so if another writer committed in between
    the UPDATE matches zero rows and SQLAlchemy raises `StaleDataError`. We
    roll back, reload and re-apply the mutation.

WHY:
    Check-then-write sequences ("is the user already a member? no -> add")
    would otherwise lose updates or duplicate entries under concurrency.

USAGE:
    def _add(workspace):
        entries, _ = upsert_member(decode_members(workspace.members), user_id, role)
        workspace.members = encode_members(entries)
        return workspace

    workspace = mutate_workspace(db, workspace_id, _add)

REFERENCES:
    - workhub/models.py (`version_id_col` on Workspace / Project)
"""

import logging
from typing import Callable, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..access.errors import Conflict, NotFound
from ..models import Project, Workspace


logger = logging.getLogger(__name__)

T = TypeVar("T")


def _default_retries() -> int:
    from ..deps import get_settings
    return get_settings().MEMBERSHIP_WRITE_RETRIES


def _compare_and_swap(
    db: Session,
    model: Type,
    entity_id: UUID,
    mutate: Callable[[object], T],
    retries: Optional[int],
    label: str,
) -> T:
    attempts = max(1, retries if retries is not None else _default_retries())

    for attempt in range(1, attempts + 1):
        entity = db.query(model).filter(model.id == entity_id).first()
        if entity is None:
            raise NotFound(f"{label.capitalize()} not found", resource=label)

        try:
            result = mutate(entity)
        except Exception:
            db.rollback()
            raise

        try:
            db.commit()
            return result
        except StaleDataError:
            db.rollback()
            logger.warning(
                "[MEMBERS] Concurrent update on %s %s (attempt %d/%d), retrying",
                label, entity_id, attempt, attempts,
            )

    raise Conflict(f"{label.capitalize()} membership is being modified concurrently, please retry", resource=label)


def mutate_workspace(
    db: Session,
    workspace_id: UUID,
    mutate: Callable[[Workspace], T],
    retries: Optional[int] = None,
) -> T:
    """Apply `mutate` to the workspace and commit with optimistic concurrency."""
    return _compare_and_swap(db, Workspace, workspace_id, mutate, retries, "workspace")


def mutate_project(
    db: Session,
    project_id: UUID,
    mutate: Callable[[Project], T],
    retries: Optional[int] = None,
) -> T:
    """Apply `mutate` to the project and commit with optimistic concurrency."""
    return _compare_and_swap(db, Project, project_id, mutate, retries, "project")

"""Workspace Factory Service - Centralized workspace creation logic.

WHAT: Provides factory functions that create a workspace together with its
      owner membership.
WHY: Registration and the explicit "create workspace" endpoint must produce
     identical rows: `owner_id` set and the owner present in `members` with
     role `owner` from the first commit on.

REFERENCES:
    - workhub/models.py (Workspace.members document shape)
    - workhub/access/membership.py (MemberEntry encoding)
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..access.membership import MemberEntry, encode_members, normalize_user_id
from ..models import Workspace, WorkspaceRoleEnum


def create_workspace_with_owner(
    db: Session,
    name: str,
    owner_user_id: UUID,
    flush_only: bool = True,
) -> Workspace:
    """Create a workspace whose members already contain its owner.

    Parameters:
        db: Database session
        name: Workspace name (e.g., "John's Workspace")
        owner_user_id: User who owns the workspace
        flush_only: If True, only flush (don't commit). Default True for
                   callers that manage their own transaction.

    Returns:
        Workspace: The created workspace
    """
    owner_entry = MemberEntry(user_id=normalize_user_id(owner_user_id), role=WorkspaceRoleEnum.owner)
    workspace = Workspace(
        name=name,
        owner_id=owner_user_id,
        members=encode_members([owner_entry]),
    )
    db.add(workspace)
    db.flush()  # Get workspace.id without committing

    if not flush_only:
        db.commit()
        db.refresh(workspace)

    return workspace


def generate_workspace_name(full_name: Optional[str]) -> str:
    """Generate a workspace name from the user's first name.

    Example:
        name = generate_workspace_name("john doe")  # "John's Workspace"
        name = generate_workspace_name("")          # "My Workspace"
    """
    parts = (full_name or "").split()
    clean_name = parts[0].strip().title() if parts else ""
    if not clean_name:
        clean_name = "My"
    return f"{clean_name}'s Workspace"


def create_workspace_for_user(
    db: Session,
    owner_user_id: UUID,
    full_name: Optional[str] = None,
    custom_name: Optional[str] = None,
    flush_only: bool = True,
) -> Workspace:
    """Create a workspace for a user with auto-generated or custom name.

    Example:
        workspace = create_workspace_for_user(db, user.id, full_name="John Doe")
        workspace = create_workspace_for_user(db, user.id, custom_name="Acme Inc")
    """
    name = custom_name if custom_name else generate_workspace_name(full_name)
    return create_workspace_with_owner(
        db=db,
        name=name,
        owner_user_id=owner_user_id,
        flush_only=flush_only,
    )

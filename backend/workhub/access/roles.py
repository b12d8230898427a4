"""Workspace role resolution."""

import logging
from typing import Any, Optional

from ..models import WorkspaceRoleEnum
from .membership import decode_members, find_member, normalize_user_id


logger = logging.getLogger(__name__)


def resolve_workspace_role(workspace, user_id: Any) -> Optional[WorkspaceRoleEnum]:
    """Return the user's role in `workspace`, or None if they are not a member.

    `owner_id` is authoritative: the owner resolves to `owner` even if the
    members document has lost their entry. For everyone else the members
    document is scanned in either storage shape. A non-owner carrying the
    `owner` role resolves to `member`.

    Never raises on malformed membership data and never caches.
    """
    key = normalize_user_id(user_id)
    if workspace is None or key is None:
        return None

    if normalize_user_id(getattr(workspace, "owner_id", None)) == key:
        return WorkspaceRoleEnum.owner

    entry = find_member(decode_members(getattr(workspace, "members", None)), key)
    if entry is None:
        return None

    if entry.role == WorkspaceRoleEnum.owner:
        logger.warning(
            "[MEMBERS] User %s holds owner role in workspace %s without being owner_id",
            key,
            getattr(workspace, "id", None),
        )
        return WorkspaceRoleEnum.member
    return entry.role


def is_workspace_member(workspace, user_id: Any) -> bool:
    return resolve_workspace_role(workspace, user_id) is not None

"""Workspace membership documents: decoding, encoding and owner repair.

WHAT:
    `Workspace.members` is a JSON column that has held two shapes over
    the life of the product:

        legacy:      ["<user-id>", "<user-id>", ...]
        structured:  [{"userId": "<user-id>", "role": "owner|admin|member"}, ...]

    Rows may even mix both. This module is the only place that looks at the
    raw shape. Everything above it works with `MemberEntry` values.

WHY:
    Shape checks are done per element and never by array position, so a
    workspace whose first element happens to be a bare id is still decoded
    correctly if later elements are objects.

REFERENCES:
    - workhub/access/roles.py (role resolution on top of decoded entries)
    - scripts/migrate_workspace_members.py (one-time rewrite of legacy rows)
"""

import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple
from uuid import UUID

from ..models import WorkspaceRoleEnum


logger = logging.getLogger(__name__)

FORMAT_EMPTY = "empty"
FORMAT_LEGACY = "legacy"
FORMAT_STRUCTURED = "structured"
FORMAT_MIXED = "mixed"
FORMAT_INVALID = "invalid"


@dataclass(frozen=True)
class MemberEntry:
    """One decoded workspace member."""

    user_id: str
    role: WorkspaceRoleEnum

    def to_document(self) -> dict:
        return {"userId": self.user_id, "role": self.role.value}


def normalize_user_id(value: Any) -> Optional[str]:
    """Return the canonical string form of a user id, or None if unusable.

    UUIDs (objects or strings in any case/format accepted by `uuid.UUID`)
    collapse to the lowercase hyphenated form so that ids written by
    different code paths compare equal. Anything else non-empty is kept
    as a stripped string.
    """
    if value is None:
        return None
    if isinstance(value, UUID):
        return str(value)
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        return str(UUID(candidate))
    except ValueError:
        return candidate


def _coerce_role(raw_role: Any, user_id: str) -> WorkspaceRoleEnum:
    if raw_role is None:
        return WorkspaceRoleEnum.member
    if isinstance(raw_role, WorkspaceRoleEnum):
        return raw_role
    if isinstance(raw_role, str):
        try:
            return WorkspaceRoleEnum(raw_role.strip().lower())
        except ValueError:
            pass
    logger.warning("[MEMBERS] Unknown role %r for user %s, treating as member", raw_role, user_id)
    return WorkspaceRoleEnum.member


def _decode_element(element: Any) -> Optional[MemberEntry]:
    # Legacy element: bare id
    if isinstance(element, (str, UUID)):
        user_id = normalize_user_id(element)
        if user_id is None:
            return None
        return MemberEntry(user_id=user_id, role=WorkspaceRoleEnum.member)

    # Structured element: {"userId": ..., "role": ...}
    if isinstance(element, dict):
        raw_id = element.get("userId", element.get("user_id"))
        user_id = normalize_user_id(raw_id)
        if user_id is None:
            return None
        return MemberEntry(user_id=user_id, role=_coerce_role(element.get("role"), user_id))

    return None


def decode_members(raw: Any) -> List[MemberEntry]:
    """Decode a raw `members` document into an ordered, de-duplicated list.

    Never raises. Malformed elements are skipped with a warning; when a user
    id appears more than once the first occurrence wins.
    """
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        logger.warning("[MEMBERS] Ignoring members document of type %s", type(raw).__name__)
        return []

    entries: List[MemberEntry] = []
    seen = set()
    for index, element in enumerate(raw):
        entry = _decode_element(element)
        if entry is None:
            logger.warning("[MEMBERS] Skipping malformed member element at index %d: %r", index, element)
            continue
        if entry.user_id in seen:
            continue
        seen.add(entry.user_id)
        entries.append(entry)
    return entries


def encode_members(entries: Iterable[MemberEntry]) -> List[dict]:
    """Encode entries into the structured document shape."""
    return [entry.to_document() for entry in entries]


def detect_members_format(raw: Any) -> str:
    """Classify a raw `members` document (used by maintenance scripts)."""
    if raw is None or (isinstance(raw, (list, tuple)) and len(raw) == 0):
        return FORMAT_EMPTY
    if not isinstance(raw, (list, tuple)):
        return FORMAT_INVALID

    has_legacy = any(isinstance(e, (str, UUID)) for e in raw)
    has_structured = any(isinstance(e, dict) for e in raw)
    if has_legacy and has_structured:
        return FORMAT_MIXED
    if has_legacy:
        return FORMAT_LEGACY
    if has_structured:
        return FORMAT_STRUCTURED
    return FORMAT_INVALID


def find_member(entries: Iterable[MemberEntry], user_id: Any) -> Optional[MemberEntry]:
    key = normalize_user_id(user_id)
    if key is None:
        return None
    for entry in entries:
        if entry.user_id == key:
            return entry
    return None


def upsert_member(
    entries: List[MemberEntry],
    user_id: Any,
    role: WorkspaceRoleEnum,
) -> Tuple[List[MemberEntry], bool]:
    """Return `(entries, changed)` with `user_id` holding `role`.

    An existing entry is updated in place (order preserved); otherwise the
    user is appended.
    """
    key = normalize_user_id(user_id)
    if key is None:
        raise ValueError(f"Invalid user id: {user_id!r}")

    updated: List[MemberEntry] = []
    found = False
    changed = False
    for entry in entries:
        if entry.user_id == key:
            found = True
            if entry.role != role:
                changed = True
                entry = MemberEntry(user_id=key, role=role)
        updated.append(entry)
    if not found:
        updated.append(MemberEntry(user_id=key, role=role))
        changed = True
    return updated, changed


def remove_member_entry(entries: List[MemberEntry], user_id: Any) -> Tuple[List[MemberEntry], bool]:
    key = normalize_user_id(user_id)
    remaining = [entry for entry in entries if entry.user_id != key]
    return remaining, len(remaining) != len(entries)


def _repaired_entries(workspace) -> List[MemberEntry]:
    owner_key = normalize_user_id(workspace.owner_id)
    entries: List[MemberEntry] = []
    for entry in decode_members(workspace.members):
        if entry.role == WorkspaceRoleEnum.owner and entry.user_id != owner_key:
            # Only owner_id may hold the owner role
            logger.warning(
                "[REPAIR] Demoting stray owner entry %s in workspace %s",
                entry.user_id,
                getattr(workspace, "id", None),
            )
            entry = MemberEntry(user_id=entry.user_id, role=WorkspaceRoleEnum.member)
        entries.append(entry)

    if owner_key is not None:
        entries, _ = upsert_member(entries, owner_key, WorkspaceRoleEnum.owner)
    return entries


def needs_owner_repair(workspace) -> bool:
    """True if `repair_owner_membership` would rewrite this workspace's members."""
    return encode_members(_repaired_entries(workspace)) != (workspace.members or [])


def repair_owner_membership(workspace):
    """Ensure the workspace owner is present in `members` with role `owner`.

    Idempotent upsert:
        - owner already present as `owner` in the structured shape: no-op
          (the `members` attribute is not even reassigned, so the row is
          not dirtied);
        - owner present with another role: upgraded in place;
        - owner absent: appended;
        - legacy or mixed documents are rewritten to the structured shape in
          the same step, every prior bare id becoming `member`.

    Works on any object exposing `owner_id` and a mutable `members`
    attribute; the caller owns persistence.
    """
    if normalize_user_id(getattr(workspace, "owner_id", None)) is None:
        logger.warning("[REPAIR] Workspace %s has no owner_id, skipping", getattr(workspace, "id", None))
        return workspace

    repaired = encode_members(_repaired_entries(workspace))
    if repaired == (workspace.members or []):
        return workspace

    logger.info(
        "[REPAIR] Restored owner membership for workspace %s (format=%s, members=%d)",
        getattr(workspace, "id", None),
        detect_members_format(workspace.members),
        len(repaired),
    )
    workspace.members = repaired
    return workspace

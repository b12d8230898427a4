"""Access-control core: membership decoding, roles, permissions and visibility."""

from .errors import (
    AccessControlError,
    BadRequest,
    Conflict,
    InvariantViolation,
    NotFound,
    PermissionDenied,
    Unauthorized,
)
from .membership import (
    MemberEntry,
    decode_members,
    encode_members,
    normalize_user_id,
    repair_owner_membership,
)
from .permissions import WorkspaceAction, can_perform, require_permission
from .roles import resolve_workspace_role
from .visibility import AccessDecision, authorize_project_access, direct_project_role_for

__all__ = [
    "AccessControlError",
    "AccessDecision",
    "BadRequest",
    "Conflict",
    "InvariantViolation",
    "MemberEntry",
    "NotFound",
    "PermissionDenied",
    "Unauthorized",
    "WorkspaceAction",
    "authorize_project_access",
    "can_perform",
    "decode_members",
    "direct_project_role_for",
    "encode_members",
    "normalize_user_id",
    "repair_owner_membership",
    "require_permission",
    "resolve_workspace_role",
]

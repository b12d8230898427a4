"""
Access Control Exceptions
=========================

Custom exception types raised by the membership, permission and invite
logic.

WHY THIS FILE EXISTS
--------------------
Services must not depend on FastAPI. They raise these exceptions and the
HTTP layer maps them to responses in one place (`workhub.main`), so the
same rules behave identically from routers, scripts and tests.

RELATED FILES
-------------
- workhub/access/permissions.py: raises PermissionDenied / InvariantViolation
- workhub/services/*.py: raise NotFound / Conflict / BadRequest / Unauthorized
- workhub/main.py: registers the handler that renders these as JSON
"""

from typing import Optional


class AccessControlError(Exception):
    """
    Base exception for all access-control errors.

    WHAT:
        Parent class carrying a human-readable message and the HTTP status
        the error maps to.

    USAGE:
        try:
            service.accept_invite(token, user_id)
        except AccessControlError as e:
            return {"detail": e.to_user_message()}
    """

    status_code: int = 400

    def __init__(self, message: str, resource: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.resource = resource

    def to_user_message(self) -> str:
        """Return a string suitable for display to end users."""
        return self.message


class NotFound(AccessControlError):
    """Referenced workspace, project, invite or user does not exist."""

    status_code = 404


class Unauthorized(AccessControlError):
    """Caller is not the party the operation is addressed to.

    Raised for example when a user tries to accept an invite sent to
    someone else.
    """

    status_code = 401


class PermissionDenied(AccessControlError):
    """Caller's role does not allow the requested action."""

    status_code = 403

    def __init__(self, message: str, action: Optional[str] = None, role: Optional[str] = None):
        super().__init__(message, resource=None)
        self.action = action
        self.role = role


class Conflict(AccessControlError):
    """Operation would duplicate an existing member or pending invite."""

    status_code = 409


class BadRequest(AccessControlError):
    """Operation is not valid in the resource's current state.

    Typical cases: accepting an expired invite, cancelling an invite that
    was already accepted.
    """

    status_code = 400


class InvariantViolation(AccessControlError):
    """Request would break a structural invariant (e.g. a second owner)."""

    status_code = 422

"""Centralized Role-Based Access Control logic."""

from typing import Optional
from use_cases.session_models import Profile

STUDENT_ACTIONS = {"TAKE_TEST", "VIEW_OWN_RESULTS"}

def enforce(profile: Optional[Profile], action: str) -> bool:
    """
    Evaluates if the profile is authorized to perform the action.
    Returns True if authorized, False otherwise.
    """
    import auth
    from infrastructure.repositories.activity_log_repository import AuditAction

    authorized = False

    if profile is not None:
        # Admins get overarching rights to everything
        if profile.role == "admin":
            authorized = True
        elif profile.role == "student" and action in STUDENT_ACTIONS:
            authorized = True

    if not authorized:
        auth.get_activity_log().log_action(
             AuditAction.RBAC_DENIED,
             target_type="rbac",
             actor_uid=profile.uid if profile else None,
             actor_role=profile.role if profile else None,
             metadata={"target_action": action, "reason": "insufficient_rights"},
             result="deny"
        )

    return authorized

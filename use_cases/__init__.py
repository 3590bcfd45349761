"""Application layer contracts for orchestrating high-level flows."""

from .auth_errors import (
    AuthError,
    DomainNotAuthorized,
    DuplicateIdentity,
    InvalidCredential,
    ProfileFetchFailed,
    UnknownProviderError,
)
from .auth_session import AuthSession
from .route_guard import GuardState, RouteDecision, classify, decide, guard, resolve_root
from .session_models import Identity, Profile, Role, SessionState, is_admin, is_student

__all__ = [
    "AuthError",
    "AuthSession",
    "DomainNotAuthorized",
    "DuplicateIdentity",
    "GuardState",
    "Identity",
    "InvalidCredential",
    "Profile",
    "ProfileFetchFailed",
    "Role",
    "RouteDecision",
    "SessionState",
    "UnknownProviderError",
    "classify",
    "decide",
    "guard",
    "is_admin",
    "is_student",
    "resolve_root",
]

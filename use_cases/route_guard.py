"""Route gating decisions derived from the session state.

Everything here is a pure function of (route, SessionState). No decision is
made while the session is still loading.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from use_cases.session_models import Role, SessionState

ROOT = "/"
LOGIN = "/login"
SIGNUP = "/signup"
HOME_BY_ROLE = {"student": "/student", "admin": "/admin"}

PUBLIC_ROUTES = (LOGIN, SIGNUP)

DecisionAction = Literal["render", "redirect", "loading", "landing", "not_found"]

LOADING_MESSAGE = "Loading..."
SETTING_UP_MESSAGE = "Setting up your account..."


class GuardState(str, Enum):
    LOADING = "Loading"
    UNAUTHENTICATED = "Unauthenticated"
    AUTHENTICATED_NO_PROFILE = "AuthenticatedNoProfile"
    AUTHENTICATED_WITH_PROFILE = "AuthenticatedWithProfile"


@dataclass(frozen=True)
class RouteDecision:
    action: DecisionAction
    target: Optional[str] = None
    message: Optional[str] = None


def classify(state: SessionState) -> GuardState:
    if not state.is_ready:
        return GuardState.LOADING
    if state.identity is None:
        return GuardState.UNAUTHENTICATED
    if state.profile is None:
        return GuardState.AUTHENTICATED_NO_PROFILE
    return GuardState.AUTHENTICATED_WITH_PROFILE


def guard(requested_role: Optional[Role], state: SessionState) -> RouteDecision:
    """Decide whether a protected screen renders or where to send the user instead."""
    if not state.is_ready:
        return RouteDecision("loading", message=LOADING_MESSAGE)
    if state.identity is None:
        return RouteDecision("redirect", target=LOGIN)
    if requested_role is not None and (state.profile is None or state.profile.role != requested_role):
        return RouteDecision("redirect", target=ROOT)
    return RouteDecision("render")


def resolve_root(state: SessionState) -> RouteDecision:
    current = classify(state)
    if current == GuardState.LOADING:
        return RouteDecision("loading", message=LOADING_MESSAGE)
    if current == GuardState.AUTHENTICATED_WITH_PROFILE:
        return RouteDecision("redirect", target=HOME_BY_ROLE[state.profile.role])
    if current == GuardState.AUTHENTICATED_NO_PROFILE:
        return RouteDecision("loading", message=SETTING_UP_MESSAGE)
    return RouteDecision("landing")


def required_role_for(path: str) -> Optional[Role]:
    for role, home in HOME_BY_ROLE.items():
        if path == home or path.startswith(home + "/"):
            return role
    return None


def normalize_path(path: Optional[str]) -> str:
    if not path:
        return ROOT
    path = "/" + path.strip().strip("/")
    return path


def decide(path: Optional[str], state: SessionState) -> RouteDecision:
    """Route table: root, public auth screens, role areas, everything else not found."""
    path = normalize_path(path)
    if path == ROOT:
        return resolve_root(state)
    if path in PUBLIC_ROUTES:
        return RouteDecision("render")
    role = required_role_for(path)
    if role is None:
        return RouteDecision("not_found")
    return guard(role, state)

"""Authentication flow orchestration (application layer)."""

from dataclasses import dataclass
from typing import Literal, Optional

from use_cases import route_guard
from use_cases.session_models import SessionState
from utils import session_manager

AuthFlowStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class AuthFlowResult:
    """Result contract for auth flow orchestration."""

    status: AuthFlowStatus
    reason: str
    route: str
    decision: route_guard.RouteDecision
    state: SessionState
    user_id: Optional[str] = None


def ensure_authenticated_session(path: Optional[str] = None) -> AuthFlowResult:
    """Resolve the session for this rerun and decide what the requested route may show."""
    session_manager.init_session_state()
    core = session_manager.get_auth_session()
    state = core.current_state()

    if path is None:
        path = session_manager.current_route()
    path = route_guard.normalize_path(path)
    decision = route_guard.decide(path, state)
    user_id = state.identity.uid if state.identity is not None else None

    if decision.action == "render":
        return AuthFlowResult(status="CONTINUE", reason="authorized", route=path, decision=decision, state=state, user_id=user_id)
    return AuthFlowResult(status="STOP", reason=decision.action, route=path, decision=decision, state=state, user_id=user_id)

"""Startup orchestration for application bootstrap."""

from dataclasses import dataclass
from typing import Literal, Tuple

import logging

import auth
from utils import session_manager

log = logging.getLogger(__name__)

StartupStatus = Literal["CONTINUE", "STOP"]


@dataclass(frozen=True)
class StartupResult:
    """Result contract for startup/bootstrap orchestration."""

    status: StartupStatus
    planned_steps: Tuple[str, ...]


def run_startup() -> StartupResult:
    """Run startup bootstrap side-effects."""
    executed_steps = []

    if not auth.get_secret("FIREBASE_WEB_API_KEY"):
        log.error("FIREBASE_WEB_API_KEY is not configured; authentication is unavailable.")
        executed_steps.append("missing_web_api_key")
        return StartupResult(status="STOP", planned_steps=tuple(executed_steps))

    auth.init_firebase_app()
    executed_steps.append("init_firebase_app")

    # Session state flags are needed for bootstrap idempotency.
    session_manager.init_session_state()
    executed_steps.append("init_session_state")

    if not session_manager.st.session_state.get("admin_bootstrapped"):
        try:
            auth.bootstrap_admin()
            executed_steps.append("bootstrap_admin")
        except Exception as e:
            # The app stays usable; the override is retried on the next session.
            log.error(f"Admin bootstrap failed: {e}", exc_info=True)
            executed_steps.append("bootstrap_admin_failed")
        else:
            session_manager.st.session_state.admin_bootstrapped = True

    return StartupResult(status="CONTINUE", planned_steps=tuple(executed_steps))

import logging
from urllib.parse import unquote

import streamlit as st
import streamlit.components.v1 as components

import auth
from use_cases.auth_errors import AuthError
from use_cases.route_guard import ROOT, normalize_path

log = logging.getLogger(__name__)

"""
SESSION STATE CONTRACT

This module owns the per-browser Streamlit session state.

st.session_state keys:

auth_session: AuthSession | None
    authentication core of this browser session (provider + profile resolution)
    default: None
    owner: auth/session_manager

refresh_token_written: bool
    the current identity's refresh token was already pushed to the browser
    default: False
    owner: auth/session_manager

clear_token_pending: bool
    the browser cookie must be cleared on the next render (set by logout)
    default: False
    owner: auth/session_manager

session_diag_seen: bool
    suppresses repeating the "could not restore session" warning
    default: False
    owner: system

federated_attempted: bool
    the Google sign-in returned by st.login() was already handed to the core,
    or was ended by logout; only the "Continue with Google" button resets it
    default: False
    owner: views/login_view

Route: the `route` query parameter, "/" when absent.
"""

COOKIE_NAME = "aptitrack_refresh_token"
COOKIE_MAX_AGE = 2592000  # 30 days

def init_session_state():
    if 'auth_session' not in st.session_state:
        st.session_state.auth_session = None
    if 'refresh_token_written' not in st.session_state:
        st.session_state.refresh_token_written = False
    if "clear_token_pending" not in st.session_state:
        st.session_state.clear_token_pending = False
    if "session_diag_seen" not in st.session_state:
        st.session_state.session_diag_seen = False
    if "federated_attempted" not in st.session_state:
        st.session_state.federated_attempted = False

def _read_refresh_cookie():
    try:
        token = st.context.cookies.get(COOKIE_NAME)
    except Exception:
        # During some tests contexts might not be fully available
        token = None
    return unquote(token) if token else None

def restore_identity(provider):
    """Replays a persisted identity into a fresh provider before the core subscribes."""
    token = _read_refresh_cookie()
    if not token:
        return None
    try:
        identity = provider.restore(token)
    except AuthError as e:
        log.warning(f"Session restore failed: {type(e).__name__}")
        identity = None
    if identity is None and not st.session_state.session_diag_seen:
        st.warning("Could not restore your session. Please sign in again.")
        st.session_state.session_diag_seen = True
        clear_browser_auth_token()
    return identity

def get_auth_session():
    core = st.session_state.get("auth_session")
    if core is None:
        provider = auth.create_identity_provider()
        restore_identity(provider)
        core = auth.create_auth_session(provider)
        core.start()
        st.session_state.auth_session = core
    return core

def remember_identity(identity):
    """Persist the refresh token in the browser so a reload can restore the session."""
    if identity is None or not identity.refresh_token:
        return
    components.html(
        f"""
        <script>
            var token = "{identity.refresh_token}";
            var cookieStr = "{COOKIE_NAME}=" + encodeURIComponent(token) + "; path=/; max-age={COOKIE_MAX_AGE}; SameSite=Lax";
            document.cookie = cookieStr;
            try {{
                window.parent.document.cookie = cookieStr;
            }} catch (e) {{
                console.log("Cross-origin frame block, normal behavior if different origin");
            }}
        </script>
        """,
        height=0,
    )
    st.session_state.refresh_token_written = True

def clear_browser_auth_token():
    components.html(
        f"""
        <script>
          document.cookie = "{COOKIE_NAME}=; path=/; max-age=0; SameSite=Lax";
          try {{ window.parent.document.cookie = "{COOKIE_NAME}=; path=/; max-age=0; SameSite=Lax"; }} catch (e) {{}}
        </script>
        """,
        height=0,
    )

def current_route():
    try:
        return normalize_path(st.query_params.get("route", ROOT))
    except Exception:
        return ROOT

def navigate(target):
    st.query_params["route"] = normalize_path(target)
    st.rerun()

def _google_login_active():
    user = getattr(st, "user", None)
    return user is not None and bool(user.get("is_logged_in"))

def logout():
    core = st.session_state.get("auth_session")
    if core is not None:
        core.logout()
    st.session_state.clear_token_pending = True
    st.session_state.refresh_token_written = False
    # A Google login from st.login() stays visible until st.logout() runs; never replay it.
    st.session_state.federated_attempted = True
    navigate(ROOT)

def sync_browser_token(state):
    """Writes or clears the refresh-token cookie on a render that is not followed by a rerun."""
    if st.session_state.get("clear_token_pending"):
        clear_browser_auth_token()
        st.session_state.clear_token_pending = False
        if _google_login_active():
            st.logout()
    if state.identity is not None and not st.session_state.get("refresh_token_written"):
        remember_identity(state.identity)

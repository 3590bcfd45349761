import os
from datetime import datetime

import streamlit as st
import streamlit.components.v1 as components

from infrastructure.observability import setup_observability, set_user_context

import ui
from use_cases import auth_flow, bootstrap
from use_cases.route_guard import HOME_BY_ROLE, LOGIN, SIGNUP
from utils import session_manager
from views import admin_view, landing_view, login_view, student_view

FORCE_HTTPS = os.getenv("FORCE_HTTPS", "False").lower() == "true"

STUDENT_PAGES = {
    "/student": student_view.render_student_home,
    "/student/results": student_view.render_student_results,
    "/student/profile": student_view.render_student_profile,
}

def _inject_security_meta():
    components.html(
        """
        <script>
        var head = window.parent.document.getElementsByTagName('head')[0] || document.getElementsByTagName('head')[0];
        var meta1 = document.createElement('meta');
        meta1.httpEquiv = "X-Content-Type-Options";
        meta1.content = "nosniff";
        head.appendChild(meta1);

        var meta2 = document.createElement('meta');
        meta2.name = "referrer";
        meta2.content = "strict-origin-when-cross-origin";
        head.appendChild(meta2);
        </script>
        """,
        height=0,
    )

def _render_sidebar(profile):
    with st.sidebar:
        st.markdown("### 🎓 AptiTrack")
        st.caption(f"{profile.display_name or profile.email} · {profile.role}")
        home = HOME_BY_ROLE[profile.role]
        if profile.role == "student":
            if st.button("🏠 Home", use_container_width=True):
                session_manager.navigate(home)
            if st.button("📈 My results", use_container_width=True):
                session_manager.navigate("/student/results")
            if st.button("👤 Profile", use_container_width=True):
                session_manager.navigate("/student/profile")
        else:
            if st.button("🏠 Dashboard", use_container_width=True):
                session_manager.navigate(home)
        st.divider()
        if st.button("Sign out", key="logout_btn", type="secondary", use_container_width=True):
            session_manager.logout()

def _render_route(route, state):
    core = session_manager.get_auth_session()
    profile = state.profile

    if route == LOGIN:
        login_view.render_login(core)
    elif route == SIGNUP:
        login_view.render_signup(core)
    elif route in STUDENT_PAGES:
        _render_sidebar(profile)
        STUDENT_PAGES[route](profile)
    elif route.startswith("/admin"):
        _render_sidebar(profile)
        admin_view.render_admin_panel(profile, route)
    else:
        landing_view.render_not_found(route)

def main():
    setup_observability()
    st.set_page_config(page_title="AptiTrack", page_icon="🎓", layout="wide", initial_sidebar_state="expanded")

    # Basic load-balancer heartbeat
    if st.query_params.get("health") == "1":
        st.write({"status": "ok", "time": datetime.utcnow().isoformat()})
        return

    if FORCE_HTTPS and st.context.headers.get("x-forwarded-proto", "http").lower() != "https":
        st.error("🚨 Insecure connection. Please use HTTPS.")
        return

    _inject_security_meta()
    ui.setup_style()

    startup_result = bootstrap.run_startup()
    if startup_result.status == "STOP":
        st.error("Authentication is not configured. Set FIREBASE_WEB_API_KEY and reload.")
        return

    login_view.complete_federated_login(session_manager.get_auth_session())

    result = auth_flow.ensure_authenticated_session()
    set_user_context(result.state.profile)

    decision = result.decision
    if decision.action == "redirect":
        session_manager.navigate(decision.target)
        return
    session_manager.sync_browser_token(result.state)

    if decision.action == "loading":
        ui.render_loading(decision.message)
        return
    if decision.action == "landing":
        landing_view.render_landing()
        return
    if decision.action == "not_found":
        landing_view.render_not_found(result.route)
        return

    _render_route(result.route, result.state)

if __name__ == "__main__":
    main()

import streamlit as st

import ui
from use_cases.route_guard import LOGIN, SIGNUP
from utils import session_manager

FEATURES = [
    ("📝", "Timed aptitude tests", "Practice with tests built by your instructors."),
    ("📈", "Track your progress", "Scores, completed tests and time spent in one place."),
    ("🛡", "Managed by admins", "Instructors curate questions, tests and the student roster."),
]

def render_landing():
    ui.render_header("AptiTrack", "Aptitude testing and progress tracking for students and instructors")

    _, c1, c2, _ = st.columns([1.5, 1, 1, 1.5])
    with c1:
        if st.button("Sign in", type="primary", use_container_width=True):
            session_manager.navigate(LOGIN)
    with c2:
        if st.button("Create account", use_container_width=True):
            session_manager.navigate(SIGNUP)

    st.write("")
    for col, (icon, title, text) in zip(st.columns(len(FEATURES)), FEATURES):
        with col:
            st.markdown(f"""
            <div class="apt-card">
                <div class="apt-card-value">{icon}</div>
                <div><b>{title}</b></div>
                <div class="apt-card-label">{text}</div>
            </div>
            """, unsafe_allow_html=True)

def render_not_found(path):
    ui.render_header("Page not found", f"Nothing lives at {path}")
    _, center, _ = st.columns([2, 1, 2])
    with center:
        if st.button("Go home", use_container_width=True):
            session_manager.navigate("/")

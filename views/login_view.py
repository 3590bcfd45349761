import logging

import streamlit as st
from streamlit.errors import StreamlitAPIException

import ui
from use_cases.auth_errors import (
    DomainNotAuthorized,
    DuplicateIdentity,
    InvalidCredential,
    UnknownProviderError,
)
from use_cases.route_guard import LOGIN, ROOT, SIGNUP
from utils import session_manager

log = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

def _show_auth_error(e):
    if isinstance(e, DomainNotAuthorized):
        st.error(str(e))
    elif isinstance(e, DuplicateIdentity):
        st.error("An account with this email already exists.")
    elif isinstance(e, InvalidCredential):
        st.error("Invalid email or password.")
    else:
        st.error("Something went wrong. Please try again.")

def _google_configured():
    try:
        return "auth" in st.secrets and hasattr(st, "login")
    except (FileNotFoundError, StreamlitAPIException):
        return False

def complete_federated_login(core):
    """Finishes a Google sign-in started with st.login() once the browser comes back."""
    user = getattr(st, "user", None)
    if user is None or not user.get("is_logged_in"):
        return
    if core.current_state().identity is not None or st.session_state.get("federated_attempted"):
        return
    st.session_state.federated_attempted = True

    tokens = user.get("tokens") or {}
    id_token = tokens.get("id")
    if not id_token:
        log.warning("Google sign-in completed without an ID token")
        st.warning("Google sign-in did not return an ID token. Enable `expose_tokens` in the auth settings.")
        return
    try:
        core.login_with_federated_identity(id_token)
    except (DomainNotAuthorized, InvalidCredential, UnknownProviderError) as e:
        _show_auth_error(e)
        return
    session_manager.navigate(ROOT)

def _render_google_button():
    if not _google_configured():
        return
    st.divider()
    if st.button("Continue with Google", use_container_width=True):
        st.session_state.federated_attempted = False
        st.login("google")

def render_login(core):
    ui.render_header("Welcome back", "Sign in to continue your aptitude journey")
    _, center, _ = st.columns([1, 1.4, 1])
    with center:
        with st.form("login_form", clear_on_submit=False):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in", type="primary", use_container_width=True)
        if submitted:
            if not email.strip() or not password:
                st.error("Please enter your email and password.")
            else:
                try:
                    core.login(email.strip(), password)
                except (DomainNotAuthorized, InvalidCredential, UnknownProviderError) as e:
                    _show_auth_error(e)
                else:
                    session_manager.navigate(ROOT)

        _render_google_button()
        if st.button("No account yet? Sign up", type="tertiary"):
            session_manager.navigate(SIGNUP)

def render_signup(core):
    ui.render_header("Create your account", "Start taking aptitude tests in minutes")
    _, center, _ = st.columns([1, 1.4, 1])
    with center:
        with st.form("signup_form", clear_on_submit=False):
            display_name = st.text_input("Full name *")
            email = st.text_input("Email *")
            password = st.text_input("Password *", type="password")
            password_confirm = st.text_input("Confirm password *", type="password")
            role = st.selectbox("I am a", ["student", "admin"], format_func=str.capitalize)
            submitted = st.form_submit_button("Create account", type="primary", use_container_width=True)
        if submitted:
            if not all([display_name.strip(), email.strip(), password, password_confirm]):
                st.error("Please fill in all required fields.")
            elif password != password_confirm:
                st.error("Passwords do not match.")
            elif len(password) < MIN_PASSWORD_LENGTH:
                st.error(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
            else:
                try:
                    core.register(email.strip(), password, display_name.strip(), role)
                except (DuplicateIdentity, DomainNotAuthorized, InvalidCredential, UnknownProviderError) as e:
                    _show_auth_error(e)
                else:
                    session_manager.navigate(ROOT)

        _render_google_button()
        if st.button("Already have an account? Sign in", type="tertiary"):
            session_manager.navigate(LOGIN)

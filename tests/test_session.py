from unittest.mock import MagicMock, patch

import streamlit as st

from use_cases.session_models import Identity, SessionState
from utils import session_manager


def test_init_session_state():
    st.session_state.clear()
    session_manager.init_session_state()
    assert st.session_state.auth_session is None
    assert st.session_state.refresh_token_written is False
    assert st.session_state.clear_token_pending is False
    assert st.session_state.federated_attempted is False


def test_init_session_state_sets_session_diag_seen_default():
    st.session_state.clear()
    session_manager.init_session_state()
    assert "session_diag_seen" in st.session_state
    assert st.session_state.session_diag_seen is False


@patch("utils.session_manager.auth.create_auth_session")
@patch("utils.session_manager.auth.create_identity_provider")
@patch("utils.session_manager._read_refresh_cookie", return_value=None)
def test_get_auth_session_is_created_once(_mock_cookie, mock_provider, mock_create):
    st.session_state.clear()
    session_manager.init_session_state()

    first = session_manager.get_auth_session()
    second = session_manager.get_auth_session()

    assert first is second
    mock_create.assert_called_once_with(mock_provider.return_value)
    first.start.assert_called_once()


@patch("utils.session_manager.clear_browser_auth_token")
@patch("utils.session_manager._read_refresh_cookie", return_value="stale-token")
def test_restore_failure_warns_once_and_clears_cookie(_mock_cookie, mock_clear):
    st.session_state.clear()
    session_manager.init_session_state()
    provider = MagicMock()
    provider.restore.return_value = None

    assert session_manager.restore_identity(provider) is None
    assert session_manager.restore_identity(provider) is None

    provider.restore.assert_called_with("stale-token")
    mock_clear.assert_called_once()
    assert st.session_state.session_diag_seen is True


@patch("utils.session_manager._read_refresh_cookie", return_value="good-token")
def test_restore_replays_identity(_mock_cookie):
    st.session_state.clear()
    session_manager.init_session_state()
    provider = MagicMock()
    provider.restore.return_value = Identity(uid="u1")

    assert session_manager.restore_identity(provider).uid == "u1"


@patch("utils.session_manager.navigate")
def test_logout(mock_navigate):
    st.session_state.clear()
    session_manager.init_session_state()
    core = MagicMock()
    st.session_state.auth_session = core
    st.session_state.refresh_token_written = True

    session_manager.logout()

    core.logout.assert_called_once()
    mock_navigate.assert_called_once_with("/")
    assert st.session_state.clear_token_pending is True
    assert st.session_state.refresh_token_written is False
    assert st.session_state.federated_attempted is True


@patch("utils.session_manager._google_login_active", return_value=False)
@patch("utils.session_manager.remember_identity")
@patch("utils.session_manager.clear_browser_auth_token")
def test_sync_browser_token(mock_clear, mock_remember, _mock_google):
    st.session_state.clear()
    session_manager.init_session_state()
    st.session_state.clear_token_pending = True

    session_manager.sync_browser_token(SessionState(readiness="ready"))
    mock_clear.assert_called_once()
    mock_remember.assert_not_called()
    assert st.session_state.clear_token_pending is False

    identity = Identity(uid="u1", refresh_token="r")
    session_manager.sync_browser_token(SessionState(identity=identity, readiness="ready"))
    mock_remember.assert_called_once_with(identity)


@patch("utils.session_manager.clear_browser_auth_token")
def test_sync_after_logout_ends_google_login(mock_clear):
    st.session_state.clear()
    session_manager.init_session_state()
    st.session_state.clear_token_pending = True

    with patch.object(st, "user", {"is_logged_in": True}, create=True), \
         patch.object(st, "logout", create=True) as mock_logout:
        session_manager.sync_browser_token(SessionState(readiness="ready"))

    mock_clear.assert_called_once()
    mock_logout.assert_called_once()


@patch("utils.session_manager.remember_identity")
def test_sync_without_logout_keeps_google_login(_mock_remember):
    st.session_state.clear()
    session_manager.init_session_state()

    with patch.object(st, "user", {"is_logged_in": True}, create=True), \
         patch.object(st, "logout", create=True) as mock_logout:
        session_manager.sync_browser_token(SessionState(identity=Identity(uid="u1"), readiness="ready"))

    mock_logout.assert_not_called()

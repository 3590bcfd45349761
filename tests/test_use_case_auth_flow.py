from datetime import datetime
from unittest.mock import MagicMock, patch

from use_cases import auth_flow
from use_cases.session_models import Identity, Profile, SessionState

NOW = datetime(2024, 1, 1)


def core_with(state):
    core = MagicMock()
    core.current_state.return_value = state
    return core


@patch("use_cases.auth_flow.session_manager.get_auth_session")
@patch("use_cases.auth_flow.session_manager.init_session_state")
def test_ensure_authenticated_session_stop_without_user(mock_init, mock_get_core):
    mock_get_core.return_value = core_with(SessionState(readiness="ready"))

    result = auth_flow.ensure_authenticated_session("/student")

    assert result.status == "STOP"
    assert result.reason == "redirect"
    assert result.decision.target == "/login"
    assert result.user_id is None
    mock_init.assert_called_once()


@patch("use_cases.auth_flow.session_manager.get_auth_session")
@patch("use_cases.auth_flow.session_manager.init_session_state")
def test_ensure_authenticated_session_continue_with_user(_mock_init, mock_get_core):
    profile = Profile(uid="s1", email="s@example.com", display_name="S", role="student", created_at=NOW, last_login=NOW)
    mock_get_core.return_value = core_with(SessionState(identity=Identity(uid="s1"), profile=profile, readiness="ready"))

    result = auth_flow.ensure_authenticated_session("student/results/")

    assert result.status == "CONTINUE"
    assert result.route == "/student/results"
    assert result.user_id == "s1"


@patch("use_cases.auth_flow.session_manager.current_route", return_value="/")
@patch("use_cases.auth_flow.session_manager.get_auth_session")
@patch("use_cases.auth_flow.session_manager.init_session_state")
def test_ensure_authenticated_session_reads_current_route(_mock_init, mock_get_core, mock_route):
    mock_get_core.return_value = core_with(SessionState())

    result = auth_flow.ensure_authenticated_session()

    mock_route.assert_called_once()
    assert result.status == "STOP"
    assert result.reason == "loading"

from unittest.mock import patch

from use_cases import bootstrap


@patch("use_cases.bootstrap.auth.bootstrap_admin")
@patch("use_cases.bootstrap.auth.init_firebase_app")
@patch("use_cases.bootstrap.auth.get_secret", return_value=None)
def test_run_startup_stops_without_api_key(_mock_get_secret, mock_init_app, mock_bootstrap_admin) -> None:
    bootstrap.session_manager.st.session_state.clear()

    result = bootstrap.run_startup()

    assert result.status == "STOP"
    assert result.planned_steps == ("missing_web_api_key",)
    mock_init_app.assert_not_called()
    mock_bootstrap_admin.assert_not_called()


@patch("use_cases.bootstrap.auth.get_secret", return_value="api-key")
def test_run_startup_init_happens_before_admin_bootstrap(_mock_get_secret) -> None:
    order = []
    bootstrap.session_manager.st.session_state.clear()

    with patch("use_cases.bootstrap.auth.init_firebase_app", side_effect=lambda: order.append("init_firebase_app")), patch(
        "use_cases.bootstrap.auth.bootstrap_admin", side_effect=lambda: order.append("bootstrap_admin")
    ):
        result = bootstrap.run_startup()

    assert result.status == "CONTINUE"
    assert order == ["init_firebase_app", "bootstrap_admin"]
    assert result.planned_steps == ("init_firebase_app", "init_session_state", "bootstrap_admin")
    assert bootstrap.session_manager.st.session_state.admin_bootstrapped is True


@patch("use_cases.bootstrap.auth.bootstrap_admin")
@patch("use_cases.bootstrap.auth.init_firebase_app")
@patch("use_cases.bootstrap.auth.get_secret", return_value="api-key")
def test_run_startup_skips_admin_bootstrap_when_done(_mock_get_secret, _mock_init_app, mock_bootstrap_admin) -> None:
    bootstrap.session_manager.st.session_state.clear()
    bootstrap.session_manager.st.session_state.admin_bootstrapped = True

    bootstrap.run_startup()

    mock_bootstrap_admin.assert_not_called()


@patch("use_cases.bootstrap.auth.bootstrap_admin", side_effect=RuntimeError("firestore down"))
@patch("use_cases.bootstrap.auth.init_firebase_app")
@patch("use_cases.bootstrap.auth.get_secret", return_value="api-key")
def test_run_startup_survives_admin_bootstrap_failure(_mock_get_secret, _mock_init_app, _mock_bootstrap_admin) -> None:
    bootstrap.session_manager.st.session_state.clear()

    result = bootstrap.run_startup()

    assert result.status == "CONTINUE"
    assert "bootstrap_admin_failed" in result.planned_steps
    assert not bootstrap.session_manager.st.session_state.get("admin_bootstrapped")

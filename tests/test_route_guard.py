from datetime import datetime

import pytest

from use_cases import route_guard
from use_cases.route_guard import GuardState, RouteDecision
from use_cases.session_models import Identity, Profile, SessionState

NOW = datetime(2024, 1, 1)


def profile(role):
    return Profile(uid="u1", email="u@example.com", display_name="U", role=role, created_at=NOW, last_login=NOW)


LOADING = SessionState()
SIGNED_OUT = SessionState(readiness="ready")
NO_PROFILE = SessionState(identity=Identity(uid="u1"), readiness="ready")
STUDENT = SessionState(identity=Identity(uid="u1"), profile=profile("student"), readiness="ready")
ADMIN = SessionState(identity=Identity(uid="u1"), profile=profile("admin"), readiness="ready")


def test_classify():
    assert route_guard.classify(LOADING) == GuardState.LOADING
    assert route_guard.classify(SIGNED_OUT) == GuardState.UNAUTHENTICATED
    assert route_guard.classify(NO_PROFILE) == GuardState.AUTHENTICATED_NO_PROFILE
    assert route_guard.classify(STUDENT) == GuardState.AUTHENTICATED_WITH_PROFILE


def test_guard_shows_loading_until_ready():
    decision = route_guard.guard("admin", LOADING)
    assert decision.action == "loading"
    assert decision.message == route_guard.LOADING_MESSAGE


def test_guard_sends_signed_out_user_to_login():
    assert route_guard.guard("student", SIGNED_OUT) == RouteDecision("redirect", target="/login")


@pytest.mark.parametrize("state", [STUDENT, NO_PROFILE])
def test_admin_screen_never_renders_for_non_admin(state):
    assert route_guard.guard("admin", state) == RouteDecision("redirect", target="/")
    for path in ("/admin", "/admin/students", "/admin/logs"):
        assert route_guard.decide(path, state).action == "redirect"


def test_student_screen_redirects_admin_to_root():
    assert route_guard.decide("/student/results", ADMIN) == RouteDecision("redirect", target="/")


def test_matching_role_renders():
    assert route_guard.guard("admin", ADMIN).action == "render"
    assert route_guard.guard("student", STUDENT).action == "render"
    assert route_guard.guard(None, NO_PROFILE).action == "render"


def test_root_without_profile_shows_setting_up():
    decision = route_guard.resolve_root(NO_PROFILE)
    assert decision.action == "loading"
    assert decision.message == route_guard.SETTING_UP_MESSAGE


def test_root_routes_by_role():
    assert route_guard.decide("/", STUDENT) == RouteDecision("redirect", target="/student")
    assert route_guard.decide("/", ADMIN) == RouteDecision("redirect", target="/admin")
    assert route_guard.decide("/", SIGNED_OUT).action == "landing"
    assert route_guard.decide("/", LOADING).action == "loading"


def test_public_routes_always_render():
    for state in (LOADING, SIGNED_OUT, STUDENT):
        assert route_guard.decide("/login", state).action == "render"
        assert route_guard.decide("signup/", state).action == "render"


def test_unknown_route_is_not_found():
    assert route_guard.decide("/teachers", ADMIN).action == "not_found"
    assert route_guard.decide("/administrator", ADMIN).action == "not_found"


def test_normalize_path():
    assert route_guard.normalize_path(None) == "/"
    assert route_guard.normalize_path("") == "/"
    assert route_guard.normalize_path("admin/tests/") == "/admin/tests"

import streamlit as st

import auth
import ui
from services import analytics_service, catalog_service, student_service
from utils import session_manager
from views.admin.analytics_view import render_analytics
from views.admin.logs_view import render_logs
from views.admin.questions_view import render_questions
from views.admin.students_view import render_students
from views.admin.tests_view import render_tests

SECTIONS = {
    "/admin/students": ("👥 Students", render_students),
    "/admin/tests": ("📝 Tests", render_tests),
    "/admin/questions": ("❓ Questions", render_questions),
    "/admin/analytics": ("📊 Analytics", lambda actor: render_analytics()),
    "/admin/logs": ("🧾 Activity log", lambda actor: render_logs()),
}

def _render_dashboard(actor):
    ui.render_header("Admin dashboard", f"Signed in as {actor.display_name or actor.email}")

    students = student_service.list_students()
    roster = analytics_service.compute_roster_stats(students)
    tests = catalog_service.list_tests()
    published = sum(1 for t in tests if t.get("status") == "published")
    ui.render_stat_cards([
        ("Students", roster.total_students, f"{roster.active_percent}% active"),
        ("Avg score", f"{roster.avg_score}%", "across the roster"),
        ("Tests", len(tests), f"{published} published"),
        ("Questions", len(catalog_service.list_questions()), "in the bank"),
    ])

    st.write("")
    st.write("#### Recent activity")
    recent = auth.get_activity_log().get_logs(limit=10)
    if not recent:
        st.caption("Nothing yet.")
    for row in recent:
        ts = row.get("ts")
        stamp = ts.strftime("%Y-%m-%d %H:%M") if hasattr(ts, "strftime") else ""
        st.write(f"`{stamp}` **{row.get('action')}** {row.get('targetType', '')} {row.get('targetId') or ''}")

def render_admin_panel(actor, path):
    nav = st.columns(len(SECTIONS) + 1)
    if nav[0].button("🏠 Dashboard", use_container_width=True, disabled=path == "/admin"):
        session_manager.navigate("/admin")
    for col, (route, (label, _)) in zip(nav[1:], SECTIONS.items()):
        if col.button(label, use_container_width=True, disabled=path == route):
            session_manager.navigate(route)
    st.divider()

    if path in SECTIONS:
        SECTIONS[path][1](actor)
    else:
        _render_dashboard(actor)

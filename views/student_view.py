import logging

import pandas as pd
import plotly.express as px
import streamlit as st

import auth
import ui
from services import analytics_service, catalog_service
from use_cases.session_models import as_datetime

log = logging.getLogger(__name__)

def _load_own_attempts(profile):
    store = auth.get_document_store()
    return store.list_records(auth.TEST_ATTEMPTS_COLLECTION, [("userId", "==", profile.uid)])

def render_student_home(profile):
    ui.render_header(f"Hi, {profile.display_name or 'there'} 👋", "Here is how you are doing")

    attempts = _load_own_attempts(profile)
    stats = analytics_service.compute_student_stats(profile.uid, attempts)
    ui.render_stat_cards([
        ("Tests completed", stats.tests_completed, "all time"),
        ("Average score", f"{stats.average_score}%", "completed tests"),
        ("Time spent", stats.total_time_spent, "across all attempts"),
    ])

    st.write("### 📝 Available tests")
    tests = catalog_service.list_tests(status="published")
    if not tests:
        st.info("No tests are published yet. Check back soon.")
        return
    done = {a.get("testId") for a in attempts if a.get("status") == "completed"}
    rows = [
        {
            "Test": t.get("title"),
            "Category": t.get("category"),
            "Duration (min)": t.get("durationMinutes"),
            "Questions": len(t.get("questionIds") or []),
            "Completed": "✅" if t.get("id") in done else "",
        }
        for t in tests
    ]
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)

def render_student_results(profile):
    ui.render_header("My results")
    attempts = _load_own_attempts(profile)
    if not attempts:
        st.info("You have not taken any tests yet.")
        return

    tests = catalog_service.list_tests()
    titles = {t["id"]: t.get("title") for t in tests}
    df = analytics_service.attempts_frame(attempts)
    df["Test"] = df["testId"].map(lambda tid: titles.get(tid, tid))
    df["Date"] = df["completedAt"].where(df["completedAt"].notna(), df["startedAt"])
    df["Date"] = pd.to_datetime(df["Date"], errors="coerce", utc=True)
    df = df.sort_values("Date")

    completed = df[df["is_completed"]]
    if not completed.empty:
        fig = px.line(completed, x="Date", y="score_num", markers=True, title="Score over time")
        fig.update_yaxes(title="Score", range=[0, 100])
        st.plotly_chart(ui.update_chart_layout(fig), use_container_width=True)

    table = df[["Test", "status", "score_num", "duration_num", "Date"]].rename(columns={
        "status": "Status", "score_num": "Score", "duration_num": "Minutes",
    })
    ui.render_aggrid(table.sort_values("Date", ascending=False), height=350, pagination=True)

def render_student_profile(profile):
    ui.render_header("My profile")
    c1, c2 = st.columns([1, 3])
    with c1:
        if profile.photo_url:
            st.image(profile.photo_url, width=120)
        else:
            initial = (profile.display_name or profile.email or "?")[0].upper()
            st.markdown(f"<div class='apt-card apt-card-value' style='text-align:center'>{initial}</div>",
                        unsafe_allow_html=True)
    with c2:
        st.markdown(f"**Name:** {profile.display_name}")
        st.markdown(f"**Email:** {profile.email}")
        st.markdown(f"**Role:** {profile.role.capitalize()}")
        if profile.created_at:
            st.markdown(f"**Member since:** {as_datetime(profile.created_at):%Y-%m-%d}")
        if profile.last_login:
            st.markdown(f"**Last login:** {as_datetime(profile.last_login):%Y-%m-%d %H:%M}")

import plotly.express as px
import streamlit as st

import auth
import ui
from services import analytics_service, catalog_service

def render_analytics():
    st.write("### 📊 Analytics")
    attempts = auth.get_document_store().list_records(auth.TEST_ATTEMPTS_COLLECTION)
    if not attempts:
        st.info("No test attempts recorded yet.")
        return

    summary = analytics_service.compute_test_summary(attempts, catalog_service.list_tests())
    completed = int(summary["completed"].sum())
    ui.render_stat_cards([
        ("Attempts", len(attempts), "all tests"),
        ("Completed", completed, f"{completed / len(attempts) * 100:.1f}% completion"),
        ("Tests taken", len(summary), "distinct tests"),
    ])

    c1, c2 = st.columns(2)
    with c1:
        daily = analytics_service.compute_daily_activity(attempts)
        if not daily.empty:
            fig = px.bar(daily, x="date", y="attempts", title="Daily activity")
            st.plotly_chart(ui.update_chart_layout(fig), use_container_width=True)
    with c2:
        dist = analytics_service.compute_score_distribution(attempts)
        fig = px.bar(dist, x="band", y="count", title="Score distribution")
        st.plotly_chart(ui.update_chart_layout(fig), use_container_width=True)

    st.write("#### Per test")
    table = summary.drop(columns=["test_id"]).rename(columns={
        "title": "Test", "attempts": "Attempts", "completed": "Completed",
        "completion_rate": "Completion %", "average_score": "Avg score",
    })
    ui.render_aggrid(table, height=350, percent_columns=("Completion %",))

import pandas as pd
import streamlit as st

from services import catalog_service
from services.errors import PermissionDenied, ValidationError

def _status_index(status):
    if status in catalog_service.TEST_STATUSES:
        return catalog_service.TEST_STATUSES.index(status)
    return 0

def _test_form(key, questions, defaults=None):
    defaults = defaults or {}
    question_labels = {q["id"]: (q.get("text") or "")[:80] for q in questions}
    with st.form(key, clear_on_submit=defaults == {}):
        title = st.text_input("Title *", value=defaults.get("title", ""))
        description = st.text_area("Description", value=defaults.get("description", ""))
        c1, c2, c3 = st.columns(3)
        category = c1.text_input("Category", value=defaults.get("category", "General"))
        duration = c2.number_input("Duration (min)", min_value=1, value=int(defaults.get("durationMinutes") or 30))
        status = c3.selectbox(
            "Status", catalog_service.TEST_STATUSES,
            index=_status_index(defaults.get("status", "draft")),
        )
        selected = st.multiselect(
            "Questions",
            options=list(question_labels),
            default=[q for q in defaults.get("questionIds", []) if q in question_labels],
            format_func=lambda qid: question_labels.get(qid, qid),
        )
        submitted = st.form_submit_button("💾 Save", type="primary")
    fields = {
        "title": title, "description": description, "category": category,
        "durationMinutes": duration, "status": status, "questionIds": selected,
    }
    return submitted, fields

def render_tests(actor):
    st.write("### 📝 Tests")
    questions = catalog_service.list_questions()

    with st.expander("➕ New test", expanded=False):
        submitted, fields = _test_form("new_test_form", questions)
        if submitted:
            try:
                catalog_service.create_test(actor, fields)
            except (ValidationError, PermissionDenied) as e:
                st.error(str(e))
            else:
                st.success("Test created")
                st.rerun()

    status_filter = st.radio("Show", ("all",) + catalog_service.TEST_STATUSES, horizontal=True)
    tests = catalog_service.list_tests(status=None if status_filter == "all" else status_filter)
    if not tests:
        st.info("No tests yet.")
        return

    overview = pd.DataFrame([
        {
            "Title": t.get("title"),
            "Category": t.get("category"),
            "Status": t.get("status"),
            "Duration (min)": t.get("durationMinutes"),
            "Questions": len(t.get("questionIds") or []),
        }
        for t in tests
    ])
    st.dataframe(overview, use_container_width=True, hide_index=True)

    by_id = {t["id"]: t for t in tests}
    selected_id = st.selectbox("Manage test", list(by_id), format_func=lambda tid: by_id[tid].get("title") or tid)
    test = by_id[selected_id]

    c1, c2, c3 = st.columns(3)
    if test.get("status") != "published" and c1.button("🚀 Publish", use_container_width=True):
        catalog_service.set_test_status(actor, selected_id, "published")
        st.rerun()
    if test.get("status") != "archived" and c2.button("📦 Archive", use_container_width=True):
        catalog_service.set_test_status(actor, selected_id, "archived")
        st.rerun()
    if c3.button("🗑 Delete", use_container_width=True):
        catalog_service.delete_test(actor, selected_id)
        st.rerun()

    with st.expander("✏️ Edit", expanded=False):
        submitted, fields = _test_form(f"edit_test_{selected_id}", questions, defaults=test)
        if submitted:
            try:
                catalog_service.update_test(actor, selected_id, fields)
            except (ValidationError, PermissionDenied) as e:
                st.error(str(e))
            else:
                st.rerun()

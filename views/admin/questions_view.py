import streamlit as st

from services import catalog_service
from services.errors import PermissionDenied, ValidationError

def _question_form(key, defaults=None):
    defaults = defaults or {}
    with st.form(key, clear_on_submit=defaults == {}):
        text = st.text_area("Question *", value=defaults.get("text", ""))
        options_raw = st.text_area(
            f"Options * (one per line, {catalog_service.MIN_OPTIONS}-{catalog_service.MAX_OPTIONS})",
            value="\n".join(defaults.get("options", [])),
        )
        c1, c2, c3 = st.columns(3)
        correct = c1.number_input("Correct option #", min_value=1, value=int(defaults.get("correctIndex", 0)) + 1)
        category = c2.text_input("Category", value=defaults.get("category", "General"))
        difficulty = c3.selectbox(
            "Difficulty", catalog_service.DIFFICULTIES,
            index=catalog_service.DIFFICULTIES.index(defaults.get("difficulty", "medium")),
        )
        submitted = st.form_submit_button("💾 Save", type="primary")
    fields = {
        "text": text,
        "options": options_raw.splitlines(),
        "correctIndex": int(correct) - 1,
        "category": category,
        "difficulty": difficulty,
    }
    return submitted, fields

def render_questions(actor):
    st.write("### ❓ Question bank")

    with st.expander("➕ New question", expanded=False):
        submitted, fields = _question_form("new_question_form")
        if submitted:
            try:
                catalog_service.create_question(actor, fields)
            except (ValidationError, PermissionDenied) as e:
                st.error(str(e))
            else:
                st.success("Question added")
                st.rerun()

    questions = catalog_service.list_questions()
    if not questions:
        st.info("The question bank is empty.")
        return

    categories = catalog_service.question_categories(questions)
    category = st.selectbox("Category", ["All"] + categories)
    if category != "All":
        questions = [q for q in questions if (q.get("category") or "General") == category]
    st.caption(f"{len(questions)} questions")

    for q in questions:
        with st.expander(f"[{q.get('difficulty', 'medium')}] {(q.get('text') or '')[:90]}"):
            for i, option in enumerate(q.get("options") or []):
                marker = "✅" if i == q.get("correctIndex") else "▫️"
                st.write(f"{marker} {option}")

            submitted, fields = _question_form(f"edit_question_{q['id']}", defaults=q)
            if submitted:
                try:
                    catalog_service.update_question(actor, q["id"], fields)
                except (ValidationError, PermissionDenied) as e:
                    st.error(str(e))
                else:
                    st.rerun()
            if st.button("🗑 Delete question", key=f"delete_question_{q['id']}"):
                catalog_service.delete_question(actor, q["id"])
                st.rerun()

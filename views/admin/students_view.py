import streamlit as st

import ui
from services import analytics_service, student_service
from services.errors import PermissionDenied, ValidationError

def _render_add_form(actor):
    with st.expander("➕ Add student", expanded=False):
        with st.form("add_student_form", clear_on_submit=True):
            c1, c2, c3 = st.columns([2, 2, 1])
            name = c1.text_input("Name *")
            email = c2.text_input("Email *")
            status = c3.selectbox("Status", student_service.STUDENT_STATUSES)
            if st.form_submit_button("Add", type="primary"):
                try:
                    student_service.create_student(actor, name, email, status)
                except (ValidationError, PermissionDenied) as e:
                    st.error(str(e))
                else:
                    st.success(f"Added {name}")
                    st.rerun()

def _render_edit_form(actor, student):
    with st.form(f"edit_student_{student.id}"):
        c1, c2, c3 = st.columns([2, 2, 1])
        name = c1.text_input("Name", value=student.name)
        email = c2.text_input("Email", value=student.email)
        status = c3.selectbox(
            "Status", student_service.STUDENT_STATUSES,
            index=student_service.STUDENT_STATUSES.index(student.status),
        )
        if st.form_submit_button("💾 Save"):
            try:
                student_service.update_student(actor, student.id, {
                    "displayName": name.strip(), "email": email.strip(), "status": status,
                })
            except (ValidationError, PermissionDenied) as e:
                st.error(str(e))
            else:
                st.rerun()

def _render_row(actor, student):
    c1, c2, c3, c4, c5 = st.columns([2.5, 1, 1, 1, 1.5])
    c1.markdown(f"**{student.name}**  \n{student.email}")
    c2.markdown(ui.status_badge(student.status), unsafe_allow_html=True)
    c3.write(f"{student.tests_completed} tests")
    c4.write(f"{student.average_score}%")
    with c5:
        b1, b2, b3 = st.columns(3)
        toggle_label = "⏸" if student.status == "active" else "▶"
        if b1.button(toggle_label, key=f"toggle_{student.id}", help="Toggle active/inactive"):
            student_service.toggle_status(actor, student)
            st.rerun()
        if b2.button("✏️", key=f"edit_{student.id}", help="Edit"):
            st.session_state.editing_student = student.id
        if b3.button("🗑", key=f"delete_{student.id}", help="Delete"):
            st.session_state.confirm_delete_student = student.id

    if st.session_state.get("editing_student") == student.id:
        _render_edit_form(actor, student)
    if st.session_state.get("confirm_delete_student") == student.id:
        st.warning(f"Delete {student.name}? This cannot be undone.")
        d1, d2, _ = st.columns([1, 1, 4])
        if d1.button("Delete", key=f"confirm_{student.id}", type="primary"):
            student_service.delete_student(actor, student.id)
            st.session_state.confirm_delete_student = None
            st.rerun()
        if d2.button("Cancel", key=f"cancel_{student.id}"):
            st.session_state.confirm_delete_student = None
            st.rerun()

def render_students(actor):
    st.write("### 👥 Students")
    students = student_service.list_students()
    stats = analytics_service.compute_roster_stats(students)
    ui.render_stat_cards([
        ("Total students", stats.total_students, "registered"),
        ("Active", stats.active_students, f"{stats.active_percent}% of roster"),
        ("Avg tests completed", stats.avg_tests_completed, "per student"),
        ("Avg score", f"{stats.avg_score}%", "completed tests"),
    ])
    st.write("")

    _render_add_form(actor)

    c1, c2, c3 = st.columns([3, 1, 1])
    search = c1.text_input("🔍 Search by name or email", "")
    status = c2.selectbox("Status", ("all",) + student_service.STUDENT_STATUSES)
    filtered = student_service.filter_students(students, search, status)
    with c3:
        st.write("")
        st.download_button(
            "⬇️ Export CSV",
            data=student_service.export_students_csv(filtered),
            file_name="students.csv",
            mime="text/csv",
            use_container_width=True,
        )

    if not filtered:
        st.info("No students match the current filters.")
        return
    st.caption(f"Showing {len(filtered)} of {len(students)}")
    for student in filtered:
        _render_row(actor, student)
        st.divider()

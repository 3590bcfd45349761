import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

import auth
from infrastructure.repositories.activity_log_repository import AuditAction
from services import analytics_service
from services.errors import PermissionDenied, ValidationError
from use_cases import rbac_policy
from use_cases.domain_models import StudentSummary
from use_cases.session_models import Profile, as_datetime

log = logging.getLogger(__name__)

STUDENT_STATUSES = ("active", "inactive", "suspended")
EDITABLE_FIELDS = {"displayName", "email", "status"}
CSV_COLUMNS = ["Name", "Email", "Status", "Joined Date", "Tests Completed", "Average Score", "Total Time"]


def _require(actor: Optional[Profile], action: str = "MANAGE_STUDENTS"):
    if not rbac_policy.enforce(actor, action):
        raise PermissionDenied(f"Not allowed: {action}")


def _to_summary(record: Dict[str, Any], attempts: Sequence[Dict[str, Any]], now: datetime) -> StudentSummary:
    stats = analytics_service.compute_student_stats(record["id"], attempts)
    status = record.get("status") if record.get("status") in STUDENT_STATUSES else "active"
    return StudentSummary(
        id=record["id"],
        name=record.get("displayName") or record.get("name") or "",
        email=record.get("email") or "",
        status=status,
        joined_date=as_datetime(record.get("createdAt"), default=now),
        last_active=as_datetime(record.get("lastLogin"), default=now),
        tests_completed=stats.tests_completed,
        average_score=stats.average_score,
        total_time_spent=stats.total_time_spent,
        avatar=record.get("photoURL"),
    )


def list_students(store=None) -> List[StudentSummary]:
    """Student profiles joined with their test-attempt statistics."""
    store = store or auth.get_document_store()
    records = store.list_records(auth.get_profiles_collection(), [("role", "==", "student")])
    attempts = store.list_records(auth.TEST_ATTEMPTS_COLLECTION)
    now = datetime.utcnow()
    return [_to_summary(r, attempts, now) for r in records]


def filter_students(students: Sequence[StudentSummary], search: str = "", status: str = "all") -> List[StudentSummary]:
    term = (search or "").strip().lower()
    result = []
    for s in students:
        matches_search = not term or term in s.name.lower() or term in s.email.lower()
        matches_status = status == "all" or s.status == status
        if matches_search and matches_status:
            result.append(s)
    return result


def create_student(actor: Optional[Profile], name: str, email: str, status: str = "active", store=None) -> str:
    _require(actor)
    name = (name or "").strip()
    email = (email or "").strip()
    if not name or not email:
        raise ValidationError("Please fill in all required fields")
    if status not in STUDENT_STATUSES:
        raise ValidationError(f"Unknown status: {status}")

    store = store or auth.get_document_store()
    now = datetime.utcnow()
    # Roster entry without a sign-in identity; the id is generated by the store.
    student_id = store.create_record(auth.get_profiles_collection(), {
        "displayName": name,
        "email": email,
        "role": "student",
        "status": status,
        "createdAt": now,
        "lastLogin": now,
    })
    auth.get_activity_log().log_action(
        AuditAction.STUDENT_CREATE, target_type="profile", target_id=student_id,
        actor_uid=actor.uid, actor_role=actor.role, metadata={"status": status},
    )
    return student_id


def update_student(actor: Optional[Profile], student_id: str, updates: Dict[str, Any], store=None):
    _require(actor)
    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"Fields cannot be edited here: {', '.join(sorted(unknown))}")
    if "status" in updates and updates["status"] not in STUDENT_STATUSES:
        raise ValidationError(f"Unknown status: {updates['status']}")

    store = store or auth.get_document_store()
    store.update_fields(auth.get_profiles_collection(), student_id, dict(updates))
    auth.get_activity_log().log_action(
        AuditAction.STUDENT_UPDATE, target_type="profile", target_id=student_id,
        actor_uid=actor.uid, actor_role=actor.role, metadata={"new_status": updates.get("status")},
    )


def toggle_status(actor: Optional[Profile], student: StudentSummary, store=None) -> str:
    new_status = "inactive" if student.status == "active" else "active"
    update_student(actor, student.id, {"status": new_status}, store=store)
    return new_status


def delete_student(actor: Optional[Profile], student_id: str, store=None):
    _require(actor)
    store = store or auth.get_document_store()
    store.delete_record(auth.get_profiles_collection(), student_id)
    auth.get_activity_log().log_action(
        AuditAction.STUDENT_DELETE, target_type="profile", target_id=student_id,
        actor_uid=actor.uid, actor_role=actor.role,
    )


def export_students_csv(students: Sequence[StudentSummary]) -> bytes:
    rows = [
        {
            "Name": s.name,
            "Email": s.email,
            "Status": s.status,
            "Joined Date": s.joined_date.strftime("%Y-%m-%d"),
            "Tests Completed": s.tests_completed,
            "Average Score": f"{s.average_score}%",
            "Total Time": s.total_time_spent,
        }
        for s in students
    ]
    return pd.DataFrame(rows, columns=CSV_COLUMNS).to_csv(index=False).encode("utf-8")

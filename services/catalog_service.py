"""Test and question bank management for admins."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import auth
from infrastructure.repositories.activity_log_repository import AuditAction
from services.errors import PermissionDenied, ValidationError
from use_cases import rbac_policy
from use_cases.session_models import Profile

log = logging.getLogger(__name__)

TEST_STATUSES = ("draft", "published", "archived")
DIFFICULTIES = ("easy", "medium", "hard")
MIN_OPTIONS = 2
MAX_OPTIONS = 6


def _require(actor: Optional[Profile], action: str):
    if not rbac_policy.enforce(actor, action):
        raise PermissionDenied(f"Not allowed: {action}")


def _audit(action, actor: Profile, target_type: str, target_id: str, **metadata):
    auth.get_activity_log().log_action(
        action, target_type=target_type, target_id=target_id,
        actor_uid=actor.uid, actor_role=actor.role, metadata=metadata or None,
    )


# --- validation ---

def validate_test(fields: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    clean = {}
    if "title" in fields or not partial:
        title = str(fields.get("title") or "").strip()
        if not title:
            raise ValidationError("Test title is required")
        clean["title"] = title
    if "description" in fields or not partial:
        clean["description"] = str(fields.get("description") or "").strip()
    if "category" in fields or not partial:
        clean["category"] = str(fields.get("category") or "General").strip() or "General"
    if "durationMinutes" in fields or not partial:
        try:
            duration = int(fields.get("durationMinutes"))
        except (TypeError, ValueError):
            raise ValidationError("Duration must be a whole number of minutes")
        if duration <= 0:
            raise ValidationError("Duration must be positive")
        clean["durationMinutes"] = duration
    if "questionIds" in fields or not partial:
        question_ids = fields.get("questionIds") or []
        clean["questionIds"] = [str(q) for q in question_ids]
    if "status" in fields or not partial:
        status = fields.get("status") or "draft"
        if status not in TEST_STATUSES:
            raise ValidationError(f"Unknown test status: {status}")
        clean["status"] = status
    return clean


def validate_question(fields: Dict[str, Any]) -> Dict[str, Any]:
    text = str(fields.get("text") or "").strip()
    if not text:
        raise ValidationError("Question text is required")

    options = [str(o).strip() for o in (fields.get("options") or []) if str(o).strip()]
    if not MIN_OPTIONS <= len(options) <= MAX_OPTIONS:
        raise ValidationError(f"A question needs between {MIN_OPTIONS} and {MAX_OPTIONS} options")

    try:
        correct_index = int(fields.get("correctIndex"))
    except (TypeError, ValueError):
        raise ValidationError("Correct answer must be selected")
    if not 0 <= correct_index < len(options):
        raise ValidationError("Correct answer is out of range")

    difficulty = fields.get("difficulty") or "medium"
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"Unknown difficulty: {difficulty}")

    return {
        "text": text,
        "options": options,
        "correctIndex": correct_index,
        "category": str(fields.get("category") or "General").strip() or "General",
        "difficulty": difficulty,
    }


# --- tests ---

def list_tests(store=None, status: Optional[str] = None) -> List[Dict[str, Any]]:
    store = store or auth.get_document_store()
    filters = [("status", "==", status)] if status else []
    tests = store.list_records(auth.TESTS_COLLECTION, filters)
    return sorted(tests, key=lambda t: str(t.get("title") or "").lower())


def create_test(actor: Optional[Profile], fields: Dict[str, Any], store=None) -> str:
    _require(actor, "MANAGE_TESTS")
    record = validate_test(fields)
    now = datetime.utcnow()
    record.update({"createdAt": now, "updatedAt": now})
    store = store or auth.get_document_store()
    test_id = store.create_record(auth.TESTS_COLLECTION, record)
    _audit(AuditAction.TEST_CREATE, actor, "test", test_id, title=record["title"])
    return test_id


def update_test(actor: Optional[Profile], test_id: str, fields: Dict[str, Any], store=None):
    _require(actor, "MANAGE_TESTS")
    updates = validate_test(fields, partial=True)
    if not updates:
        return
    updates["updatedAt"] = datetime.utcnow()
    store = store or auth.get_document_store()
    store.update_fields(auth.TESTS_COLLECTION, test_id, updates)
    _audit(AuditAction.TEST_UPDATE, actor, "test", test_id, status=updates.get("status"))


def set_test_status(actor: Optional[Profile], test_id: str, status: str, store=None):
    update_test(actor, test_id, {"status": status}, store=store)


def delete_test(actor: Optional[Profile], test_id: str, store=None):
    _require(actor, "MANAGE_TESTS")
    store = store or auth.get_document_store()
    store.delete_record(auth.TESTS_COLLECTION, test_id)
    _audit(AuditAction.TEST_DELETE, actor, "test", test_id)


# --- questions ---

def list_questions(store=None, category: Optional[str] = None) -> List[Dict[str, Any]]:
    store = store or auth.get_document_store()
    filters = [("category", "==", category)] if category else []
    return store.list_records(auth.QUESTIONS_COLLECTION, filters)


def question_categories(questions: Sequence[Dict[str, Any]]) -> List[str]:
    return sorted({q.get("category") or "General" for q in questions})


def create_question(actor: Optional[Profile], fields: Dict[str, Any], store=None) -> str:
    _require(actor, "MANAGE_QUESTIONS")
    record = validate_question(fields)
    record["createdAt"] = datetime.utcnow()
    store = store or auth.get_document_store()
    question_id = store.create_record(auth.QUESTIONS_COLLECTION, record)
    _audit(AuditAction.QUESTION_CREATE, actor, "question", question_id, category=record["category"])
    return question_id


def update_question(actor: Optional[Profile], question_id: str, fields: Dict[str, Any], store=None):
    _require(actor, "MANAGE_QUESTIONS")
    record = validate_question(fields)
    store = store or auth.get_document_store()
    store.update_fields(auth.QUESTIONS_COLLECTION, question_id, record)
    _audit(AuditAction.QUESTION_UPDATE, actor, "question", question_id, category=record["category"])


def delete_question(actor: Optional[Profile], question_id: str, store=None):
    _require(actor, "MANAGE_QUESTIONS")
    store = store or auth.get_document_store()
    store.delete_record(auth.QUESTIONS_COLLECTION, question_id)
    _audit(AuditAction.QUESTION_DELETE, actor, "question", question_id)

import csv
import io
from datetime import datetime
from unittest.mock import patch

import pytest

from services import student_service
from services.errors import PermissionDenied, ValidationError


@pytest.fixture(autouse=True)
def activity_log():
    with patch("auth.get_activity_log") as mock_get:
        yield mock_get.return_value


@pytest.fixture
def roster(store):
    store.set_record("profiles", "s1", {
        "displayName": "Alice", "email": "alice@example.com", "role": "student", "status": "active",
        "createdAt": datetime(2024, 1, 5), "lastLogin": datetime(2024, 2, 1),
    })
    store.set_record("profiles", "s2", {
        "name": "Bob", "email": "bob@example.com", "role": "student", "status": "weird",
    })
    store.set_record("profiles", "a1", {"displayName": "Admin", "email": "admin@example.com", "role": "admin"})
    store.create_record("testAttempts", {"userId": "s1", "testId": "t1", "status": "completed", "score": 90, "duration": 20})
    store.create_record("testAttempts", {"userId": "s1", "testId": "t2", "status": "completed", "score": 70, "duration": 40})
    return store


def test_list_students_joins_stats(roster):
    students = {s.id: s for s in student_service.list_students(store=roster)}

    assert set(students) == {"s1", "s2"}
    alice = students["s1"]
    assert alice.name == "Alice"
    assert alice.tests_completed == 2
    assert alice.average_score == 80
    assert alice.total_time_spent == "1h 0m"
    assert alice.joined_date == datetime(2024, 1, 5)
    bob = students["s2"]
    assert bob.name == "Bob"
    assert bob.status == "active"
    assert bob.tests_completed == 0


def test_filter_students(roster):
    students = student_service.list_students(store=roster)
    assert [s.id for s in student_service.filter_students(students, search="ALI")] == ["s1"]
    assert [s.id for s in student_service.filter_students(students, search="bob@")] == ["s2"]
    assert student_service.filter_students(students, status="inactive") == []
    assert len(student_service.filter_students(students)) == 2


def test_create_student_requires_admin(store, student_profile):
    with pytest.raises(PermissionDenied):
        student_service.create_student(student_profile, "New", "new@example.com", store=store)
    assert store.list_records("profiles") == []


def test_create_student_validates_fields(store, admin_profile):
    with pytest.raises(ValidationError):
        student_service.create_student(admin_profile, "  ", "new@example.com", store=store)
    with pytest.raises(ValidationError):
        student_service.create_student(admin_profile, "New", "new@example.com", status="banned", store=store)


def test_create_student(store, admin_profile, activity_log):
    student_id = student_service.create_student(admin_profile, " New ", "new@example.com", store=store)

    record = store.get_record("profiles", student_id)
    assert record["displayName"] == "New"
    assert record["role"] == "student"
    assert record["status"] == "active"
    assert record["createdAt"] == record["lastLogin"]
    assert activity_log.log_action.call_args.kwargs["target_id"] == student_id


def test_update_student_rejects_role_changes(roster, admin_profile):
    with pytest.raises(ValidationError):
        student_service.update_student(admin_profile, "s1", {"role": "admin"}, store=roster)
    assert roster.get_record("profiles", "s1")["role"] == "student"


def test_toggle_status(roster, admin_profile):
    alice = next(s for s in student_service.list_students(store=roster) if s.id == "s1")

    assert student_service.toggle_status(admin_profile, alice, store=roster) == "inactive"
    assert roster.get_record("profiles", "s1")["status"] == "inactive"


def test_delete_student(roster, admin_profile):
    student_service.delete_student(admin_profile, "s2", store=roster)
    assert roster.get_record("profiles", "s2") is None


def test_export_csv(roster):
    students = student_service.list_students(store=roster)
    data = student_service.export_students_csv(students).decode("utf-8")

    rows = list(csv.DictReader(io.StringIO(data)))
    assert list(rows[0].keys()) == student_service.CSV_COLUMNS
    alice = next(r for r in rows if r["Name"] == "Alice")
    assert alice["Joined Date"] == "2024-01-05"
    assert alice["Average Score"] == "80%"
    assert alice["Tests Completed"] == "2"

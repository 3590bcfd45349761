from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional

from use_cases.session_models import StudentStatus


@dataclass(frozen=True)
class StudentStats:
    """Aggregated test-attempt statistics for one student."""
    tests_completed: int
    average_score: int
    total_minutes: float
    total_time_spent: str


@dataclass(frozen=True)
class StudentSummary:
    """Roster row: a student profile joined with its attempt statistics."""
    id: str
    name: str
    email: str
    status: StudentStatus
    joined_date: datetime
    last_active: datetime
    tests_completed: int = 0
    average_score: int = 0
    total_time_spent: str = "0h 0m"
    avatar: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RosterStats:
    total_students: int
    active_students: int
    active_percent: int
    avg_tests_completed: str
    avg_score: str

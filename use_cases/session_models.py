"""Session DTOs shared across application layers."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Literal, Optional

Role = Literal["student", "admin"]
Readiness = Literal["loading", "ready"]
StudentStatus = Literal["active", "inactive", "suspended"]

ROLES = ("student", "admin")
DEFAULT_ROLE: Role = "student"
FEDERATED_DISPLAY_NAME = "Google User"


@dataclass(frozen=True)
class Identity:
    """Authenticated provider account. Owned by the identity provider."""

    uid: str
    email: str = ""
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    id_token: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)


@dataclass(frozen=True)
class Profile:
    uid: str
    email: str
    display_name: str
    role: Role
    created_at: datetime
    last_login: datetime
    photo_url: Optional[str] = None

    @classmethod
    def from_record(cls, uid: str, record: Dict[str, Any]) -> "Profile":
        role = record.get("role")
        if role not in ROLES:
            role = DEFAULT_ROLE
        created_at = as_datetime(record.get("createdAt"))
        return cls(
            uid=uid,
            email=record.get("email") or "",
            display_name=record.get("displayName") or record.get("name") or "",
            role=role,
            created_at=created_at,
            last_login=as_datetime(record.get("lastLogin"), default=created_at),
            photo_url=record.get("photoURL"),
        )

    def to_record(self) -> Dict[str, Any]:
        record = {
            "uid": self.uid,
            "email": self.email,
            "displayName": self.display_name,
            "role": self.role,
            "createdAt": self.created_at,
            "lastLogin": self.last_login,
        }
        # Only add photoURL if it exists
        if self.photo_url:
            record["photoURL"] = self.photo_url
        return record


@dataclass(frozen=True)
class SessionState:
    identity: Optional[Identity] = None
    profile: Optional[Profile] = None
    readiness: Readiness = "loading"

    @property
    def is_ready(self) -> bool:
        return self.readiness == "ready"


def is_admin(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.role == "admin"


def is_student(profile: Optional[Profile]) -> bool:
    return profile is not None and profile.role == "student"


def as_datetime(value: Any, default: Optional[datetime] = None) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    # Firestore Timestamp-like objects
    to_datetime = getattr(value, "to_datetime", None)
    if callable(to_datetime):
        return to_datetime()
    return default if default is not None else datetime.utcfromtimestamp(0)

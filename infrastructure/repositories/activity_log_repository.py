from typing import Optional, Dict, Any, List
from datetime import datetime
import logging
from enum import Enum

log = logging.getLogger(__name__)

ACTIVITY_LOGS_COLLECTION = "activityLogs"


class AuditAction(str, Enum):
    REGISTER = "REGISTER"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAIL = "LOGIN_FAIL"
    FEDERATED_LOGIN = "FEDERATED_LOGIN"
    LOGOUT = "LOGOUT"
    RBAC_DENIED = "RBAC_DENIED"
    STUDENT_CREATE = "STUDENT_CREATE"
    STUDENT_UPDATE = "STUDENT_UPDATE"
    STUDENT_DELETE = "STUDENT_DELETE"
    TEST_CREATE = "TEST_CREATE"
    TEST_UPDATE = "TEST_UPDATE"
    TEST_DELETE = "TEST_DELETE"
    QUESTION_CREATE = "QUESTION_CREATE"
    QUESTION_UPDATE = "QUESTION_UPDATE"
    QUESTION_DELETE = "QUESTION_DELETE"
    ROLE_OVERRIDE = "ROLE_OVERRIDE"
    SYSTEM_ERROR = "SYSTEM_ERROR"


ALLOWED_METADATA_KEYS = {
    "reason", "new_status", "new_role", "old_role", "error_code",
    "target_action", "role", "status", "provider", "title", "category",
}


class ActivityLogRepository:
    def __init__(self, store, collection: str = ACTIVITY_LOGS_COLLECTION):
        self.store = store
        self.collection = collection

    def log_action(
        self,
        action: Any,
        target_type: str,
        actor_uid: Optional[str] = None,
        actor_role: Optional[str] = None,
        target_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        result: str = "success"
    ):
        """Writes an activity entry. Metadata is filtered to a whitelist of keys."""
        try:
            safe_meta = {}
            if metadata is not None:
                for k, v in metadata.items():
                    if k in ALLOWED_METADATA_KEYS and "password" not in str(v).lower() and "token" not in str(v).lower():
                        safe_meta[k] = str(v)[:200] if isinstance(v, str) else v

            action_val = action.value if hasattr(action, "value") else str(action)[:50]
            if not action_val: action_val = "UNKNOWN"

            self.store.create_record(self.collection, {
                "ts": datetime.utcnow(),
                "actorUid": actor_uid,
                "actorRole": str(actor_role)[:20] if actor_role is not None else None,
                "action": action_val,
                "targetType": str(target_type)[:50] if target_type else "UNKNOWN",
                "targetId": str(target_id)[:100] if target_id is not None else None,
                "metadata": safe_meta,
                "result": str(result)[:20] if result else "unknown",
            })
        except Exception as e:
            # Audit failures must not crash the main application
            log.error(f"Activity log failed for action {action}: {e}", exc_info=True)

    def get_logs(self, limit: int = 100, action_filter: Optional[str] = None) -> List[Dict[str, Any]]:
        """Fetches the most recent activity entries for the admin view."""
        try:
            filters = []
            if action_filter and action_filter != "All":
                filters.append(("action", "==", action_filter))
            rows = self.store.list_records(self.collection, filters)
        except Exception as e:
            log.error(f"Failed to fetch activity logs: {e}", exc_info=True)
            return []
        rows.sort(key=_ts_key, reverse=True)
        return rows[:limit]


def _ts_key(row: Dict[str, Any]) -> float:
    ts = row.get("ts")
    return ts.timestamp() if isinstance(ts, datetime) else 0.0

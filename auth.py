import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore
import streamlit as st
from streamlit.errors import StreamlitAPIException

from infrastructure.identity.firebase_identity_provider import FirebaseIdentityProvider
from infrastructure.repositories.activity_log_repository import ActivityLogRepository, AuditAction
from infrastructure.repositories.firestore_document_repository import FirestoreDocumentRepository
from use_cases.auth_session import PROFILES_COLLECTION, AuthSession

log = logging.getLogger(__name__)

TEST_ATTEMPTS_COLLECTION = "testAttempts"
TESTS_COLLECTION = "tests"
QUESTIONS_COLLECTION = "questions"

def get_secret(key, default=None):
    try:
        value = st.secrets.get(key)
    except (FileNotFoundError, StreamlitAPIException):
        value = None
    if value is None:
        value = os.getenv(key)
    return value if value is not None else default

def get_profiles_collection():
    return get_secret("PROFILES_COLLECTION", PROFILES_COLLECTION)

def _load_credentials():
    try:
        section = st.secrets.get("firebase")
    except (FileNotFoundError, StreamlitAPIException):
        section = None
    if section:
        return credentials.Certificate(dict(section))

    raw = get_secret("FIREBASE_CREDENTIALS")
    if raw:
        # Either a path to the service-account file or the JSON itself
        if os.path.exists(raw):
            return credentials.Certificate(raw)
        return credentials.Certificate(json.loads(raw))
    return credentials.ApplicationDefault()

def init_firebase_app():
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    options = {}
    project_id = get_secret("FIREBASE_PROJECT_ID")
    if project_id:
        options["projectId"] = project_id
    app = firebase_admin.initialize_app(_load_credentials(), options or None)
    log.info(f"Firebase app initialized (project: {project_id or 'from credentials'})")
    return app

_document_store = None
_activity_log = None

def get_document_store() -> FirestoreDocumentRepository:
    global _document_store
    if _document_store is None:
        init_firebase_app()
        _document_store = FirestoreDocumentRepository(firestore.client())
    return _document_store

def get_activity_log() -> ActivityLogRepository:
    global _activity_log
    if _activity_log is None:
        _activity_log = ActivityLogRepository(get_document_store())
    return _activity_log

def create_identity_provider() -> FirebaseIdentityProvider:
    return FirebaseIdentityProvider(
        api_key=get_secret("FIREBASE_WEB_API_KEY"),
        app_origin=get_secret("APP_ORIGIN"),
    )

def create_auth_session(provider=None) -> AuthSession:
    return AuthSession(
        provider or create_identity_provider(),
        get_document_store(),
        profiles_collection=get_profiles_collection(),
        activity_log=get_activity_log(),
    )

def bootstrap_admin():
    """Promotes the configured ADMIN_EMAIL account to admin. Role changes happen only here."""
    admin_email = get_secret("ADMIN_EMAIL")
    if not admin_email:
        return False

    store = get_document_store()
    collection = get_profiles_collection()
    matches = store.list_records(collection, [("email", "==", admin_email.strip())])
    promoted = False
    for record in matches:
        if record.get("role") == "admin":
            continue
        store.update_fields(collection, record["id"], {"role": "admin"})
        get_activity_log().log_action(
            AuditAction.ROLE_OVERRIDE,
            target_type="profile",
            target_id=record["id"],
            metadata={"old_role": record.get("role"), "new_role": "admin"},
        )
        log.info(f"Promoted {record['id']} to admin")
        promoted = True
    return promoted

import logging
import threading
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import urlencode

import requests

from use_cases.auth_errors import (
    AuthError,
    DomainNotAuthorized,
    DuplicateIdentity,
    InvalidCredential,
    UnknownProviderError,
)
from use_cases.session_models import Identity

log = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts:{method}"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
REQUEST_TIMEOUT = 10

IdentityListener = Callable[[Optional[Identity]], None]
Dispatcher = Callable[..., None]

_INVALID_CREDENTIAL_CODES = {
    "INVALID_PASSWORD",
    "EMAIL_NOT_FOUND",
    "INVALID_LOGIN_CREDENTIALS",
    "INVALID_EMAIL",
    "WEAK_PASSWORD",
    "MISSING_PASSWORD",
    "MISSING_EMAIL",
    "USER_DISABLED",
    "INVALID_IDP_RESPONSE",
    "INVALID_REFRESH_TOKEN",
    "TOKEN_EXPIRED",
    "USER_NOT_FOUND",
}
_UNAUTHORIZED_DOMAIN_CODES = {
    "UNAUTHORIZED_DOMAIN",
    "API_KEY_HTTP_REFERRER_BLOCKED",
    "INVALID_CONTINUE_URI",
}


def _call_now(fn, *args):
    fn(*args)


def map_provider_error(payload: Dict[str, Any], status_code: int = 400) -> AuthError:
    """Translate a Firebase Auth REST error body into the application taxonomy."""
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return UnknownProviderError(f"Auth provider error: HTTP {status_code}", code=str(status_code))

    message = str(error.get("message") or "")
    # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
    code = message.split(" : ", 1)[0].strip()
    reasons = {str(d.get("reason")) for d in error.get("details", []) if isinstance(d, dict)}

    if code == "EMAIL_EXISTS":
        return DuplicateIdentity("An account with this email already exists.", code=code)
    if code in _UNAUTHORIZED_DOMAIN_CODES or reasons & _UNAUTHORIZED_DOMAIN_CODES or "referer" in message.lower():
        return DomainNotAuthorized()
    if code in _INVALID_CREDENTIAL_CODES:
        return InvalidCredential(message, code=code)
    return UnknownProviderError(message or f"Auth provider error: HTTP {status_code}", code=code)


class FirebaseIdentityProvider:
    """Firebase Authentication over the Identity Toolkit REST API.

    Holds the signed-in identity for one browser session and notifies listeners
    whenever it changes (sign in, sign up, federated sign in, restore, sign out).
    A listener added with subscribe() immediately receives the current identity.
    """

    def __init__(self, api_key: str, app_origin: Optional[str] = None, dispatcher: Optional[Dispatcher] = None):
        self.api_key = api_key
        self.app_origin = app_origin
        self._dispatch = dispatcher or _call_now
        self._listeners: List[IdentityListener] = []
        self._listeners_lock = threading.Lock()
        self._current: Optional[Identity] = None

    @property
    def current_identity(self) -> Optional[Identity]:
        return self._current

    # --- transport ---

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.app_origin:
            headers["Referer"] = self.app_origin
        return headers

    def _post(self, url: str, *, json: Optional[dict] = None, data: Optional[dict] = None) -> Dict[str, Any]:
        if not self.api_key:
            raise UnknownProviderError("FIREBASE_WEB_API_KEY is not configured.", code="CONFIGURATION")
        headers = self._headers()
        if data is not None:
            headers["Content-Type"] = "application/x-www-form-urlencoded"
        try:
            resp = requests.post(
                url,
                params={"key": self.api_key},
                json=json,
                data=data,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            log.error(f"Network error calling auth provider: {e}")
            raise UnknownProviderError(f"Auth provider network error: {e}", code="NETWORK") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = {}

        if resp.status_code != 200:
            err = map_provider_error(payload, resp.status_code)
            log.warning(f"Auth provider rejected request: {type(err).__name__} ({err.code})")
            raise err
        return payload

    def _accounts(self, method: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._post(IDENTITY_TOOLKIT_URL.format(method=method), json=body)

    @staticmethod
    def _identity_from_payload(payload: Dict[str, Any]) -> Identity:
        uid = payload.get("localId") or payload.get("user_id")
        if not uid:
            raise UnknownProviderError("Auth provider response did not include a user id.", code="MALFORMED_RESPONSE")
        return Identity(
            uid=uid,
            email=payload.get("email") or "",
            display_name=payload.get("displayName") or payload.get("fullName") or None,
            photo_url=payload.get("photoUrl") or None,
            id_token=payload.get("idToken") or payload.get("id_token"),
            refresh_token=payload.get("refreshToken") or payload.get("refresh_token"),
        )

    # --- notifications ---

    def subscribe(self, callback: IdentityListener) -> Callable[[], None]:
        with self._listeners_lock:
            self._listeners.append(callback)
        self._dispatch(callback, self._current)

        def unsubscribe():
            with self._listeners_lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def _set_current(self, identity: Optional[Identity]):
        self._current = identity
        with self._listeners_lock:
            listeners = list(self._listeners)
        for callback in listeners:
            self._dispatch(callback, identity)

    # --- operations ---

    def sign_in_with_password(self, email: str, password: str) -> Identity:
        payload = self._accounts("signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        identity = self._identity_from_payload(payload)
        self._set_current(identity)
        return identity

    def create_account(self, email: str, password: str) -> Identity:
        payload = self._accounts("signUp", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        identity = self._identity_from_payload(payload)
        log.info(f"Created identity {identity.uid}")
        self._set_current(identity)
        return identity

    def set_display_name(self, identity: Identity, display_name: str) -> Identity:
        self._accounts("update", {
            "idToken": identity.id_token,
            "displayName": display_name,
            "returnSecureToken": False,
        })
        updated = Identity(
            uid=identity.uid,
            email=identity.email,
            display_name=display_name,
            photo_url=identity.photo_url,
            id_token=identity.id_token,
            refresh_token=identity.refresh_token,
        )
        # A profile update is not an identity change: no notification.
        if self._current is not None and self._current.uid == identity.uid:
            self._current = updated
        return updated

    def sign_in_with_idp(self, provider_token: str, provider_id: str = "google.com") -> Identity:
        payload = self._accounts("signInWithIdp", {
            "postBody": urlencode({"id_token": provider_token, "providerId": provider_id}),
            "requestUri": self.app_origin or "http://localhost",
            "returnIdpCredential": True,
            "returnSecureToken": True,
        })
        identity = self._identity_from_payload(payload)
        self._set_current(identity)
        return identity

    def restore(self, refresh_token: str) -> Optional[Identity]:
        """Replays a persisted identity from a refresh token. Returns None when it is no longer valid."""
        try:
            tokens = self._post(SECURE_TOKEN_URL, data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            })
            lookup = self._accounts("lookup", {"idToken": tokens.get("id_token")})
        except InvalidCredential:
            log.info("Persisted refresh token rejected; staying signed out.")
            return None
        users = lookup.get("users") or []
        if not users:
            return None
        user = dict(users[0])
        user["idToken"] = tokens.get("id_token")
        user["refreshToken"] = tokens.get("refresh_token") or refresh_token
        identity = self._identity_from_payload(user)
        self._set_current(identity)
        return identity

    def sign_out(self):
        # ID tokens are stateless; forgetting them locally is the sign-out.
        self._set_current(None)

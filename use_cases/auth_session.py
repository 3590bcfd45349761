"""Authentication/session core.

Owns the mapping from a provider identity to an application profile and
publishes the combined (identity, profile, readiness) state to subscribers.
It is the only writer of that state.

Identity resolution runs on startup and on every identity-changed
notification from the provider. Each notification takes a new generation
number; a resolution result is applied only while its generation is still
the latest one, so a slow fetch for an older identity can never overwrite a
newer result.

Creating an account is two independent writes (identity, then profile). If
the process dies in between, the identity exists without a profile; the
next resolution pass reports "profile absent" and the root route shows the
account set-up screen until a profile appears.
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Callable, List, Optional

from use_cases.auth_errors import AuthError, ProfileFetchFailed, UnknownProviderError
from use_cases.session_models import (
    DEFAULT_ROLE,
    FEDERATED_DISPLAY_NAME,
    Identity,
    Profile,
    Role,
    SessionState,
)

log = logging.getLogger(__name__)

PROFILES_COLLECTION = "profiles"

StateListener = Callable[[SessionState], None]


def _utcnow() -> datetime:
    return datetime.utcnow()


class AuthSession:
    def __init__(self, provider, store, profiles_collection: str = PROFILES_COLLECTION, activity_log=None, clock=_utcnow):
        self.provider = provider
        self.store = store
        self.profiles_collection = profiles_collection
        self.activity_log = activity_log
        self._clock = clock

        self._lock = threading.RLock()
        self._state = SessionState()
        self._generation = 0
        self._latest_uid: Optional[str] = None
        # Profile created locally for a uid whose store write may not be visible yet.
        self._created_profile: Optional[Profile] = None
        self._listeners: List[StateListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    # --- lifecycle ---

    def start(self):
        """Subscribe to the provider; it replays the current identity right away."""
        if self._unsubscribe is None:
            self._unsubscribe = self.provider.subscribe(self._on_identity_changed)

    def close(self):
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    # --- state ---

    def current_state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, state: SessionState):
        with self._lock:
            self._state = state
            listeners = list(self._listeners)
            for listener in listeners:
                try:
                    listener(state)
                except Exception as e:
                    log.error(f"Session listener failed: {e}", exc_info=True)

    # --- identity resolution ---

    def _on_identity_changed(self, identity: Optional[Identity]):
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._latest_uid = identity.uid if identity is not None else None
            if self._created_profile is not None and self._created_profile.uid != self._latest_uid:
                self._created_profile = None

        if identity is None:
            self._apply(generation, None, None)
            return

        try:
            profile = self._fetch_profile(identity.uid)
        except ProfileFetchFailed as e:
            log.error(f"Error fetching profile for {identity.uid}: {e}")
            profile = None
        self._apply(generation, identity, profile)

    def _apply(self, generation: int, identity: Optional[Identity], profile: Optional[Profile]):
        with self._lock:
            if generation != self._generation:
                log.debug(f"Discarding superseded resolution pass {generation} (latest {self._generation})")
                return
            uid = identity.uid if identity is not None else None
            if uid != self._latest_uid:
                return
            if profile is None and self._created_profile is not None and self._created_profile.uid == uid:
                profile = self._created_profile
            self._publish(SessionState(identity=identity, profile=profile, readiness="ready"))

    def _fetch_profile(self, uid: str) -> Optional[Profile]:
        try:
            record = self.store.get_record(self.profiles_collection, uid)
        except Exception as e:
            raise ProfileFetchFailed(str(e)) from e
        if record is None:
            return None
        return Profile.from_record(uid, record)

    def _touch_last_login(self, uid: str, when: datetime):
        with self._lock:
            profile = self._state.profile
            if profile is not None and profile.uid == uid:
                self._publish(replace(self._state, profile=replace(profile, last_login=when)))

    def _set_created_profile(self, profile: Profile):
        with self._lock:
            self._created_profile = profile
            # Identity is left to the provider notification.
            self._publish(replace(self._state, profile=profile))

    # --- operations ---

    def register(self, email: str, password: str, display_name: str, role: Role) -> Profile:
        try:
            identity = self.provider.create_account(email, password)
            identity = self.provider.set_display_name(identity, display_name)
            now = self._clock()
            profile = Profile(
                uid=identity.uid,
                email=identity.email or email,
                display_name=display_name,
                role=role,
                created_at=now,
                last_login=now,
                photo_url=identity.photo_url,
            )
            self.store.set_record(self.profiles_collection, identity.uid, profile.to_record(), mode="overwrite")
        except AuthError:
            raise
        except Exception as e:
            log.error(f"Registration failed for {email}: {e}", exc_info=True)
            raise UnknownProviderError(str(e)) from e

        self._set_created_profile(profile)
        self._audit("REGISTER", profile)
        return profile

    def login(self, email: str, password: str) -> Identity:
        try:
            identity = self.provider.sign_in_with_password(email, password)
            now = self._clock()
            self.store.set_record(self.profiles_collection, identity.uid, {"lastLogin": now}, mode="merge")
        except AuthError as e:
            self._audit("LOGIN_FAIL", None, result="deny", metadata={"error_code": e.code})
            raise
        except Exception as e:
            log.error(f"Login failed for {email}: {e}", exc_info=True)
            raise UnknownProviderError(str(e)) from e

        # The profile may have been fetched before the merge landed.
        self._touch_last_login(identity.uid, now)
        self._audit("LOGIN_SUCCESS", None, actor_uid=identity.uid)
        return identity

    def login_with_federated_identity(self, provider_token: str, provider_id: str = "google.com") -> Identity:
        try:
            identity = self.provider.sign_in_with_idp(provider_token, provider_id)
            existing = self.store.get_record(self.profiles_collection, identity.uid)
            now = self._clock()
            if existing is None:
                # First time login with the federated provider
                profile = Profile(
                    uid=identity.uid,
                    email=identity.email,
                    display_name=identity.display_name or FEDERATED_DISPLAY_NAME,
                    role=DEFAULT_ROLE,
                    created_at=now,
                    last_login=now,
                    photo_url=identity.photo_url,
                )
                self.store.set_record(self.profiles_collection, identity.uid, profile.to_record(), mode="overwrite")
            else:
                profile = None
                self.store.set_record(self.profiles_collection, identity.uid, {"lastLogin": now}, mode="merge")
        except AuthError:
            raise
        except Exception as e:
            log.error(f"Federated login failed: {e}", exc_info=True)
            raise UnknownProviderError(str(e)) from e

        if profile is not None:
            self._set_created_profile(profile)
        else:
            self._touch_last_login(identity.uid, now)
        self._audit("FEDERATED_LOGIN", profile, actor_uid=identity.uid, metadata={"provider": provider_id})
        return identity

    def logout(self):
        state = self._state
        with self._lock:
            self._created_profile = None
            self._publish(replace(self._state, profile=None))
        try:
            self.provider.sign_out()
        except Exception as e:
            log.error(f"Sign-out failed: {e}", exc_info=True)
        if state.identity is not None:
            self._audit("LOGOUT", state.profile, actor_uid=state.identity.uid)

    def _audit(self, action: str, profile: Optional[Profile], actor_uid: Optional[str] = None, **kwargs):
        if self.activity_log is None:
            return
        self.activity_log.log_action(
            action,
            target_type="auth",
            actor_uid=profile.uid if profile is not None else actor_uid,
            actor_role=profile.role if profile is not None else None,
            **kwargs,
        )

"""Authentication error taxonomy surfaced to the presentation layer."""

UNAUTHORIZED_DOMAIN_MESSAGE = (
    "This domain is not authorized for Firebase authentication. "
    "Please contact the administrator to add this domain to the Firebase project settings."
)


class AuthError(Exception):
    """Base class for every identity/profile failure raised by the core."""

    def __init__(self, message: str = "", code: str = ""):
        super().__init__(message or code or self.__class__.__name__)
        self.code = code


class InvalidCredential(AuthError):
    pass


class DuplicateIdentity(AuthError):
    pass


class DomainNotAuthorized(AuthError):
    def __init__(self, message: str = UNAUTHORIZED_DOMAIN_MESSAGE, code: str = "UNAUTHORIZED_DOMAIN"):
        super().__init__(message, code)


class ProfileFetchFailed(AuthError):
    """Transient store failure during identity resolution. Never raised to callers."""


class UnknownProviderError(AuthError):
    pass

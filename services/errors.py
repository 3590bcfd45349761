class ValidationError(ValueError):
    """Raised when admin input does not satisfy a record's constraints."""


class PermissionDenied(Exception):
    """Raised when the current profile may not perform an admin action."""

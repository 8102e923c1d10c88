class ProfileConflictError(Exception):
    """A profile with the same username or email already exists."""

    def __init__(self, message: str = "User is already registered"):
        super().__init__(message)
        self.message = message


# PostgREST / Postgres error codes
UNIQUE_VIOLATION = "23505"
INSUFFICIENT_PRIVILEGE = "42501"


def _error_code(exc: Exception):
    code = getattr(exc, "code", None)
    if code is None and getattr(exc, "orig", None) is not None:
        code = getattr(exc.orig, "pgcode", None)
    return str(code) if code is not None else None


def _error_text(exc: Exception) -> str:
    return describe_error(exc).lower()


def is_row_level_security_error(exc: Exception) -> bool:
    return _error_code(exc) == INSUFFICIENT_PRIVILEGE or "row-level" in _error_text(exc)


def is_unique_violation(exc: Exception) -> bool:
    text = _error_text(exc)
    return _error_code(exc) == UNIQUE_VIOLATION or "duplicate key" in text or "unique constraint" in text


def describe_error(exc: Exception) -> str:
    """PostgREST errors carry the useful text in .message"""
    return getattr(exc, "message", None) or str(exc)

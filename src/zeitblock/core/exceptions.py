"""Domain-specific exception types."""


class ZeitblockError(Exception):
    """Base application error."""


class ValidationError(ZeitblockError):
    """Raised when a requested change is rejected before anything is persisted."""


class PersistenceError(ZeitblockError):
    """Raised when persistence operations fail."""


class SettingsError(ZeitblockError):
    """Raised when settings cannot be validated or saved."""


class InvariantViolationError(ZeitblockError):
    """Raised when the segment sequence reaches a state the engine must not continue from."""

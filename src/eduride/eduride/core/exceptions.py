class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when an RFID tag or bus does not resolve to a record."""


class ConflictError(DomainError):
    """Raised when a student scans a bus they are not assigned to."""


class PersistenceError(RuntimeError):
    """Raised when a store is unreachable or rejects a write."""


class DuplicateOpenSessionError(PersistenceError):
    """Raised when another writer already opened the session for the same student, bus and day."""


class DeliveryError(RuntimeError):
    """Raised by a notification channel that could not hand off a message."""

"""Exception hierarchy for record creation."""

from typing import Optional


class RecordCreationError(Exception):
    """Base error for a dependent record that could not be created."""

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.message = message
        self.attempts = attempts


class DependencyNotReady(RecordCreationError):
    """Retries exhausted while the referenced upstream row stayed invisible."""


class PermanentInsertFailure(RecordCreationError):
    """Non-transient datastore error (uniqueness, validation). Never retried."""

    def __init__(self, message: str, attempts: int, kind: Optional[str] = None):
        super().__init__(message, attempts)
        self.kind = kind


class CreationCancelled(RecordCreationError):
    """The caller cancelled the operation while it was waiting to retry."""


__all__ = [
    "CreationCancelled",
    "DependencyNotReady",
    "PermanentInsertFailure",
    "RecordCreationError",
]

"""
Failure categories for the submission intake pipeline.

Every failure the pipeline can report belongs to one of these classes. Each
carries a stable ``category`` string that callers and tests match on, a
``public_message`` that is safe to show the submitter, and a ``context`` dict
with structured detail (field name, limit value, filename) for logs.
"""

from typing import Any, Dict, Optional


class IntakeError(Exception):
    """Base class for all intake failures."""

    category = "intake_error"
    # Server-side failures hide their detail from the submitter unless debug mode is on.
    client_fixable = False
    generic_message = "Submission could not be processed. Please try again later."

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = dict(context or {})

    @property
    def public_message(self) -> str:
        return self.message if self.client_fixable else self.generic_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "message": self.message,
            "context": self.context,
        }


class ValidationError(IntakeError):
    """A required field is missing or malformed. Reported verbatim."""

    category = "validation_error"
    client_fixable = True

    def __init__(self, message: str, field: Optional[str] = None, **context: Any):
        super().__init__(message, {"field": field, **context})
        self.field = field


class QuotaExceeded(IntakeError):
    """File count, file size or file type falls outside the configured limits."""

    category = "quota_exceeded"
    client_fixable = True

    def __init__(self, message: str, limit: Any = None, **context: Any):
        super().__init__(message, {"limit": limit, **context})
        self.limit = limit


class StorageError(IntakeError):
    """Directory or file I/O failed on the server."""

    category = "storage_error"
    generic_message = "Your files could not be stored. Please try again later."


class DuplicateIdentity(IntakeError):
    """The repository already holds a record with this submission_id."""

    category = "duplicate_identity"

    def __init__(self, submission_id: str):
        super().__init__(
            f"Submission id {submission_id} already exists",
            {"submission_id": submission_id},
        )
        self.submission_id = submission_id


class PersistenceError(IntakeError):
    """The repository rejected the record for a reason other than a duplicate id."""

    category = "persistence_error"
    generic_message = "Your submission could not be saved. Please try again later."


class NotificationError(IntakeError):
    """Outbound notification failed. Only ever logged."""

    category = "notification_error"


class ConfigurationError(IntakeError):
    """Settings or storage schema are unusable. Raised at start-up, not per request."""

    category = "configuration_error"

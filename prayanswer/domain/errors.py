"""
Typed domain errors for the prayer journal core.

Callers can distinguish validation, persistence, attachment, extraction,
permission and calendar failures and map each one to a user-facing message.
Every error carries a ``message_key`` into the locale files.
"""

from typing import Optional


class DomainError(Exception):
    """Base class for all domain-specific errors."""

    message_key = "error.unknown"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class ValidationError(DomainError):
    """Input rejected before any persistence attempt."""


class ContentRequired(ValidationError):
    message_key = "validation.content_required"

    def __init__(self) -> None:
        super().__init__("Prayer content must not be blank")


class ContentTooLong(ValidationError):
    message_key = "validation.content_too_long"

    def __init__(self, length: int, limit: int) -> None:
        self.length = length
        self.limit = limit
        super().__init__(f"Prayer content is {length} characters (max {limit})")


class TitleTooLong(ValidationError):
    message_key = "validation.title_too_long"

    def __init__(self, length: int, limit: int) -> None:
        self.length = length
        self.limit = limit
        super().__init__(f"Prayer title is {length} characters (max {limit})")


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


class PersistenceError(DomainError):
    """A mutating repository operation failed and was rolled back."""

    message_key = "error.persistence"

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"Failed to {operation} prayer: {cause}")


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


class AttachmentError(DomainError):
    """Base class for attachment storage failures."""

    message_key = "attachment.error_unknown"


class AttachmentTooLarge(AttachmentError):
    message_key = "attachment.error_too_large"

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Attachment is {size} bytes (max {limit})")


class UnsupportedAttachmentFormat(AttachmentError):
    message_key = "attachment.error_unsupported_format"


class InvalidAttachmentImage(AttachmentError):
    message_key = "attachment.error_invalid_image"


class AttachmentDirectoryCreationFailed(AttachmentError):
    message_key = "attachment.error_directory_creation"


class AttachmentWriteFailed(AttachmentError):
    message_key = "attachment.error_save_failed"


class AttachmentLoadFailed(AttachmentError):
    message_key = "attachment.error_load_failed"


class AttachmentDeleteFailed(AttachmentError):
    message_key = "attachment.error_delete_failed"


# ---------------------------------------------------------------------------
# Text extraction
# ---------------------------------------------------------------------------


class ExtractionError(DomainError):
    """Base class for text recognition failures."""


class InvalidImageError(ExtractionError):
    message_key = "ocr.error_invalid_image"


class RecognitionFailed(ExtractionError):
    message_key = "ocr.error_failed"


class NoTextFound(ExtractionError):
    message_key = "ocr.error_no_text"

    def __init__(self) -> None:
        super().__init__("No text recognized in image")


class CleanupError(DomainError):
    """Base class for AI text cleanup failures."""


class EmptyInput(CleanupError):
    message_key = "ai.error_empty_input"

    def __init__(self) -> None:
        super().__init__("Nothing to clean up")


class CleanupNotAvailable(CleanupError):
    message_key = "ai.error_not_available"

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"AI cleanup not available: {reason}")


class SummarizationFailed(CleanupError):
    message_key = "ai.error_summarization_failed"

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"AI cleanup failed: {cause}")


# ---------------------------------------------------------------------------
# Permissions and calendar
# ---------------------------------------------------------------------------


class PermissionRequired(DomainError):
    """User denied a platform permission; UI should offer a settings link."""

    message_key = "permission.required"

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Permission required: {kind}")


class CalendarError(DomainError):
    message_key = "calendar.error_unknown"


class CalendarEventNotFound(CalendarError):
    message_key = "calendar.error_event_not_found"

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Calendar event {event_id} not found")

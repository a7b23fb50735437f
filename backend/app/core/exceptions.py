"""Custom exception classes for the O-range portal."""


class ORangeException(Exception):
    """Base exception for all portal-specific errors."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(self.message)


# Configuration errors

class ConfigurationError(ORangeException):
    """Raised when a required external credential or setting is missing."""

    def __init__(self, setting_name: str):
        super().__init__(
            message=f"{setting_name} is not configured",
            details="The server is missing a required setting"
        )
        self.setting_name = setting_name


# Validation errors

class ValidationFailedError(ORangeException):
    """Raised when a request payload violates a domain rule."""

    def __init__(self, message: str):
        super().__init__(message=message, details="The request was rejected before any change was made")


class DimensionMismatchError(ORangeException):
    """Raised when two vectors of different length are compared."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            message=f"Vector dimension mismatch: {expected} != {actual}",
            details="Vectors produced by different embedding models cannot be compared"
        )
        self.expected = expected
        self.actual = actual


class EmptyQuestionError(ORangeException):
    """Raised when a RAG question is blank."""

    def __init__(self):
        super().__init__(
            message="Question cannot be empty",
            details="質問を入力してください"
        )


class InvalidImageError(ORangeException):
    """Raised when an uploaded image has a wrong type or is too large."""

    def __init__(self, reason: str):
        super().__init__(message=f"Invalid image: {reason}", details=reason)
        self.reason = reason


class InvalidWeekIdError(ORangeException):
    """Raised when a week id does not follow the YYYY-Www format."""

    def __init__(self, week_id: str):
        super().__init__(
            message=f"Invalid week id: {week_id}",
            details="Week ids must look like 2026-W02"
        )
        self.week_id = week_id


# Empty-state errors

class NoReportsError(ORangeException):
    """Raised when archiving while there are no live reports."""

    def __init__(self):
        super().__init__(
            message="There are no reports to archive",
            details="保存する報告がありません"
        )


class NoEmbeddingDataError(ORangeException):
    """Raised when a RAG query finds no archived embeddings."""

    def __init__(self):
        super().__init__(
            message="No archived embeddings are available for search",
            details="RAG検索用のデータがありません。履歴を保存する際に埋め込みを生成してください。"
        )


# Lookup errors

class MemberNotFoundError(ORangeException):
    """Raised when a member is not found."""

    def __init__(self, member_id: str):
        super().__init__(
            message=f"Member not found: {member_id}",
            details="The requested member does not exist"
        )
        self.member_id = member_id


class ReportNotFoundError(ORangeException):
    """Raised when a live report is not found."""

    def __init__(self, report_id: str):
        super().__init__(
            message=f"Report not found: {report_id}",
            details="The requested report does not exist"
        )
        self.report_id = report_id


class IdeaNotFoundError(ORangeException):
    """Raised when an idea is not found."""

    def __init__(self, idea_id: str):
        super().__init__(
            message=f"Idea not found: {idea_id}",
            details="The requested idea does not exist"
        )
        self.idea_id = idea_id


class HistoryNotFoundError(ORangeException):
    """Raised when no archive exists for a week."""

    def __init__(self, week_id: str):
        super().__init__(
            message=f"Report history not found: {week_id}",
            details="No reports were archived for this week"
        )
        self.week_id = week_id


# Auth errors

class AuthenticationError(ORangeException):
    """Raised when a request carries no valid login session."""

    def __init__(self, reason: str = "Not authenticated"):
        super().__init__(message=reason, details="ログインしてください")


class EditModeRequiredError(ORangeException):
    """Raised when a bulk edit is attempted outside edit mode."""

    def __init__(self):
        super().__init__(
            message="Edit mode is required for this operation",
            details="編集モードを有効にしてください"
        )


# Transient I/O errors

class LLMServiceError(ORangeException):
    """Raised when LLM service encounters an error."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"LLM service error during {operation}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(
            message=message,
            details="The language model service is temporarily unavailable"
        )
        self.operation = operation
        self.original_error = original_error


class EmbeddingServiceError(ORangeException):
    """Raised when embedding service encounters an error."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"Embedding service error during {operation}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(
            message=message,
            details="The embedding service is temporarily unavailable"
        )
        self.operation = operation
        self.original_error = original_error


class StorageError(ORangeException):
    """Raised when the blob storage fails."""

    def __init__(self, operation: str, original_error: Exception | None = None):
        message = f"Storage error during {operation}"
        if original_error:
            message += f": {str(original_error)}"
        super().__init__(
            message=message,
            details="The image storage is temporarily unavailable"
        )
        self.operation = operation
        self.original_error = original_error

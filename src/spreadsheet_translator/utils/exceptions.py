"""Centralized exception classes for the spreadsheet translator.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details for consistent
error handling throughout the application.

Exception Hierarchy:
    SpreadsheetTranslatorError (base)
    ├── FileError
    │   ├── FileTooLargeError
    │   ├── UnsupportedFormatError
    │   └── WorkbookReadError
    ├── ValidationError
    ├── TemplateError
    │   └── TemplateNotFoundError
    ├── TranslationError
    │   ├── NoEligibleContentError
    │   └── ReconciliationError
    └── BackendError
        └── BackendRateLimitError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: File/workbook errors
    - E2xxx: Input validation errors
    - E3xxx: Prompt template errors
    - E4xxx: Translation pipeline errors
    - E5xxx: External backend errors
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_TOO_LARGE = "E1001"
    UNSUPPORTED_FORMAT = "E1002"
    WORKBOOK_READ_ERROR = "E1003"
    WORKBOOK_WRITE_ERROR = "E1004"

    # Validation errors (E2xxx)
    VALIDATION_FAILED = "E2001"
    GRID_TOO_LARGE = "E2002"
    MALFORMED_GRID = "E2003"

    # Template errors (E3xxx)
    TEMPLATE_NOT_FOUND = "E3001"
    TEMPLATE_INVALID = "E3002"

    # Translation errors (E4xxx)
    TRANSLATION_FAILED = "E4001"
    NO_ELIGIBLE_CONTENT = "E4002"
    RECONCILIATION_FAILED = "E4003"

    # External backend errors (E5xxx)
    BACKEND_ERROR = "E5001"
    BACKEND_RATE_LIMIT = "E5002"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"
    CONFIGURATION_ERROR = "E9002"


class HTTPStatusMixin:
    """Mixin that provides HTTP status code for exceptions.

    Subclasses should set the `http_status` class attribute.
    """

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception.

        Returns:
            HTTP status code appropriate for this error.
        """
        return self.http_status


class SpreadsheetTranslatorError(Exception, HTTPStatusMixin):
    """Base exception for all spreadsheet translator errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for API responses.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# File Errors (E1xxx)
# =============================================================================


class FileError(SpreadsheetTranslatorError):
    """Base class for uploaded workbook errors."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.WORKBOOK_READ_ERROR,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file name information.

        Args:
            message: Error message.
            error_code: Error code.
            file_name: Name of the problematic file.
            details: Additional details.
        """
        details = details or {}
        if file_name:
            details["file_name"] = file_name
        super().__init__(message, error_code, details)
        self.file_name = file_name


class FileTooLargeError(FileError):
    """Raised when an upload exceeds the maximum allowed size."""

    http_status: int = 413

    def __init__(
        self,
        file_size: int,
        max_size: int,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Actual file size in bytes.
            max_size: Maximum allowed size in bytes.
            file_name: Optional file name.
            details: Additional details.
        """
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        message = (
            f"File size ({file_size} bytes) exceeds maximum "
            f"allowed size ({max_size} bytes)"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_TOO_LARGE,
            file_name=file_name,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


class UnsupportedFormatError(FileError):
    """Raised when an upload is not a supported workbook format."""

    def __init__(
        self,
        message: str,
        extension: str | None = None,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with format information.

        Args:
            message: Error message.
            extension: File extension that was rejected.
            file_name: Optional file name.
            details: Additional details.
        """
        details = details or {}
        if extension:
            details["extension"] = extension
        super().__init__(
            message=message,
            error_code=ErrorCode.UNSUPPORTED_FORMAT,
            file_name=file_name,
            details=details,
        )
        self.extension = extension


class WorkbookReadError(FileError):
    """Raised when a workbook cannot be decoded."""

    def __init__(
        self,
        message: str,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=ErrorCode.WORKBOOK_READ_ERROR,
            file_name=file_name,
            details=details,
        )


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================


class ValidationError(SpreadsheetTranslatorError):
    """Raised for malformed or oversized input before translation starts."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[str] | None = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation details.

        Args:
            message: Main error message.
            field: Field that failed validation.
            errors: List of validation errors.
            error_code: Error code (defaults to VALIDATION_FAILED).
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        if errors:
            details["validation_errors"] = errors
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
        self.field = field
        self.errors = errors or []


# =============================================================================
# Template Errors (E3xxx)
# =============================================================================


class TemplateError(SpreadsheetTranslatorError):
    """Base class for prompt template errors."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.TEMPLATE_INVALID,
        template_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if template_id:
            details["template_id"] = template_id
        super().__init__(message, error_code, details)
        self.template_id = template_id


class TemplateNotFoundError(TemplateError):
    """Raised when a prompt template id does not exist."""

    http_status: int = 404

    def __init__(self, template_id: str) -> None:
        super().__init__(
            message=f"Prompt template not found: {template_id}",
            error_code=ErrorCode.TEMPLATE_NOT_FOUND,
            template_id=template_id,
        )


# =============================================================================
# Translation Errors (E4xxx)
# =============================================================================


class TranslationError(SpreadsheetTranslatorError):
    """Base class for translation pipeline errors."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.TRANSLATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


class NoEligibleContentError(TranslationError):
    """Raised when a run has no selected sheets or no translatable cells."""

    http_status: int = 422

    def __init__(
        self,
        message: str = "No translatable content found",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.NO_ELIGIBLE_CONTENT, details)


class ReconciliationError(TranslationError):
    """Raised when translated cells cannot be mapped back onto the grid.

    Short backend responses are not reconciliation errors; they are padded
    by the batch translator. This error signals a broken position mapping.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.RECONCILIATION_FAILED, details)


# =============================================================================
# External Backend Errors (E5xxx)
# =============================================================================


class BackendError(SpreadsheetTranslatorError):
    """Raised when a text-generation backend request fails."""

    http_status: int = 502

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.BACKEND_ERROR,
        model: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with model information.

        Args:
            message: Error message.
            error_code: Error code.
            model: The backend model that caused the error.
            details: Additional details.
        """
        details = details or {}
        if model:
            details["model"] = model
        super().__init__(message, error_code, details)
        self.model = model


class BackendRateLimitError(BackendError):
    """Raised when the backend rejects a request for rate limiting."""

    http_status: int = 429

    def __init__(
        self,
        message: str = "Text-generation backend rate limit exceeded",
        retry_after: int | None = None,
        model: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if retry_after is not None:
            details["retry_after_seconds"] = retry_after
        super().__init__(
            message=message,
            error_code=ErrorCode.BACKEND_RATE_LIMIT,
            model=model,
            details=details,
        )
        self.retry_after = retry_after

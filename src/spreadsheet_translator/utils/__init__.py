"""Utilities package for the spreadsheet translator.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from spreadsheet_translator.utils.exceptions import (
    BackendError,
    BackendRateLimitError,
    ErrorCode,
    FileError,
    FileTooLargeError,
    HTTPStatusMixin,
    NoEligibleContentError,
    ReconciliationError,
    SpreadsheetTranslatorError,
    TemplateError,
    TemplateNotFoundError,
    TranslationError,
    UnsupportedFormatError,
    ValidationError,
    WorkbookReadError,
)
from spreadsheet_translator.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "BackendError",
    "BackendRateLimitError",
    "ErrorCode",
    "FileError",
    "FileTooLargeError",
    "HTTPStatusMixin",
    "NoEligibleContentError",
    "ReconciliationError",
    "SpreadsheetTranslatorError",
    "TemplateError",
    "TemplateNotFoundError",
    "TranslationError",
    "UnsupportedFormatError",
    "ValidationError",
    "WorkbookReadError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]

"""Search engine exceptions; framework-independent."""

from typing import Any


class SearchError(Exception):
    """Base class for errors surfaced to search callers.

    ``code`` is the stable machine-readable identifier placed in the
    error envelope; ``details`` carries optional structured context.
    """

    code: str = "SEARCH_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: Any = None,
    ):
        self.message = message
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(message)


class SearchValidationError(SearchError):
    """Raised when filters, pagination or options violate a constraint."""

    code = "VALIDATION_ERROR"


class UrlTooLongError(SearchValidationError):
    """Raised when a simple-form request URL exceeds the allowed length."""

    code = "URL_TOO_LONG"

    def __init__(self, url_length: int, max_length: int):
        super().__init__(
            "Request URL is too long. Please use POST "
            "/api/v1/service-requests/search for complex queries",
            details={"urlLength": url_length, "maxLength": max_length},
        )


class AuthenticationRequiredError(SearchError):
    """Raised when the upstream gateway did not identify the caller."""

    code = "UNAUTHORIZED"


class PermissionDeniedError(SearchError):
    """Raised when the caller's role may not perform an operation."""

    code = "FORBIDDEN"


class SearchExecutionError(SearchError):
    """Raised when the record store fails during a search.

    The message is deliberately generic; the underlying cause is kept
    on ``__cause__`` and in the logs.
    """

    code = "SEARCH_ERROR"

    def __init__(self, message: str = "Failed to perform search"):
        super().__init__(message)


class ExportFormatNotImplementedError(SearchError):
    """Raised for an export encoding that is declared but not supported."""

    code = "NOT_IMPLEMENTED"

    def __init__(self, export_format: str):
        self.export_format = export_format
        super().__init__(f"Export format {export_format} is not yet implemented")


class ExportExecutionError(SearchExecutionError):
    """Raised when the record store fails while gathering an export."""

    code = "EXPORT_ERROR"

    def __init__(self, message: str = "Failed to export search results"):
        super().__init__(message)

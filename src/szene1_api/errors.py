"""Exceptions raised by the Szene1 API client.

Local failures (bad path, bad arguments, session state conflicts) are raised
before any network activity. Remote failures are split by layer: HTTP status
errors, undecodable bodies and application errors reported in the XML body.
"""

# Error code the service reports for an invalid or expired auth token.
INVALID_TOKEN_ERROR_CODE = 104


class Szene1Error(Exception):
    """Base class for all client errors."""


class MalformedPathError(Szene1Error):
    """Raised when an API path is not a section/method pair."""


class InvalidArgumentError(Szene1Error):
    """Raised for bad login credentials or a malformed session record."""


class UnsupportedMethodError(InvalidArgumentError):
    """Raised for HTTP verbs other than GET, POST and PUT."""


class SessionConflictError(Szene1Error):
    """Raised when logging in while a session is already held."""


class NoActiveSessionError(Szene1Error):
    """Raised when logging out without a held session."""


class TransportError(Szene1Error):
    """Raised when the service answers with an HTTP 4xx or 5xx status."""

    def __init__(self, status_code: int, reason: str):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"Error {status_code}: {reason}")


class DecodeError(Szene1Error):
    """Raised when a response body is not a usable XML document.

    ``excerpt`` holds the start of the offending body with XML/HTML entities
    escaped, safe to show to humans or to embed in logs.
    """

    def __init__(self, message: str, excerpt: str = ""):
        self.excerpt = excerpt
        if excerpt:
            message = f"{message}: {excerpt}"
        super().__init__(message)


class ApiError(Szene1Error):
    """Raised when the service reports an application error."""

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"API Error {code}: {message}")

    @property
    def is_invalid_token(self) -> bool:
        """Whether the error means the session is gone and a new login is needed."""
        return self.code == INVALID_TOKEN_ERROR_CODE

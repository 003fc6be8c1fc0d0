"""Error taxonomy shared by every Postmark resource client."""

from enum import StrEnum


class ErrorKind(StrEnum):
    INVALID_ARGUMENT = "invalid_argument"
    CONNECTION = "connection"
    RUNTIME = "runtime"


class PostmarkError(Exception):
    """Base class for errors raised by the Postmark client."""

    kind: ErrorKind = ErrorKind.RUNTIME


class InvalidArgumentError(PostmarkError, ValueError):
    """Malformed local input, detected before any network call."""

    kind = ErrorKind.INVALID_ARGUMENT


class AuthenticationRequiredError(InvalidArgumentError):
    """An email operation was invoked before a server was selected."""

    def __init__(
        self,
        message: str = "Authentication required. Use either with_server() or with_server_token().",
    ) -> None:
        super().__init__(message)


class PostmarkConnectionError(PostmarkError, ConnectionError):
    """The transport could not reach the Postmark API."""

    kind = ErrorKind.CONNECTION


class PostmarkRuntimeError(PostmarkError, RuntimeError):
    """The API rejected a request, or an unexpected failure was wrapped.

    ``body`` holds the raw response body when the API answered with a
    non-success status; wrapped failures keep the original exception as
    ``__cause__``.
    """

    kind = ErrorKind.RUNTIME

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodeError(ValueError):
    """A response payload is missing a required field or has the wrong shape."""

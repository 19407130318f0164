from typing import List, Optional


class RestAssayError(Exception):
    """Base class for restassay exceptions."""


class ValidationFailure(RestAssayError, AssertionError):
    """A response did not satisfy an expectation.

    The message is the exact diagnostic text of the failing expectation. In
    collect-all mode, every failing message is also available in failures.
    """

    def __init__(self, message: str, failures: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.failures = failures if failures is not None else [message]


class SpecUsageError(RestAssayError, ValueError):
    """The harness was used in a way that cannot produce an exchange, for
    example a filter continuation invoked twice."""


class CsrfTokenNotFound(SpecUsageError):
    """The page fetched from the CSRF token path did not advertise a token."""

    def __init__(self, message: str, field_name: Optional[str], body: str):
        super().__init__(message)
        self.field_name = field_name
        self.body = body

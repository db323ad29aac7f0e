"""Exception hierarchy shared by the API client, orchestrator and CLI."""

from __future__ import annotations


class CodeSentryError(Exception):
    """Base class for every error raised by codesentry."""


class ApiError(CodeSentryError):
    """The remote API rejected a request or answered with a non-200 envelope."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(ApiError):
    """The stored token is missing, expired or was refused (HTTP 401)."""


class TransportError(ApiError):
    """The request never produced a response: connection failure or timeout."""


class SubmissionError(CodeSentryError):
    """Starting a scan failed. The caller may retry by submitting again."""

    def __init__(self, code_id: str, reason: str) -> None:
        super().__init__(f"Could not start scan for {code_id}: {reason}")
        self.code_id = code_id
        self.reason = reason


class TransientFetchError(CodeSentryError):
    """A single status check failed; absorbed into the poll retry budget."""

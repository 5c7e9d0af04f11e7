"""Exception types raised by HTTP Observatory."""

from __future__ import annotations

from typing import Optional


class ObservatoryError(Exception):
    """Base class for all package errors."""


class TraceHeaderError(ObservatoryError):
    """A trace or segment id does not fit the requested header format."""


class FederationError(ObservatoryError):
    """The identity broker or STS returned an unusable response."""

    def __init__(self, operation: str, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(f"{operation}: {message}")
        self.operation = operation
        self.status_code = status_code


class CredentialsError(ObservatoryError):
    """Anonymous credentials could not be acquired."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class HttpRequestError(ObservatoryError):
    """Stands for a transport-level failure reported without an exception."""

"""Application-level exception types for Sift."""

from __future__ import annotations


class SiftError(Exception):
    """Base exception for Sift."""


class ConfigurationError(SiftError):
    """Base exception for configuration and startup validation errors."""


class ApiKeyNotConfiguredError(ConfigurationError):
    """Raised when the remote backend needs an API key and none is set."""


class RemoteError(SiftError):
    """Raised by a remote backend when the service reports a failure."""

    def __init__(self, message: str, *, kind: str = "remote") -> None:
        super().__init__(message)
        self.kind = kind


class AcquisitionError(SiftError):
    """Raised when the session resources for one invocation cannot be allocated.

    This is the only error an invocation surfaces; the caller may retry.
    """

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage

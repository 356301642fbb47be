"""Exceptions raised by the claim and dashboard flows."""

from __future__ import annotations


class PolicyHubError(Exception):
    """Base class for application errors."""


class FraudAnalysisError(PolicyHubError):
    """The fraud-analysis service failed or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthError(PolicyHubError):
    """The auth provider rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

"""
Auth error taxonomy mapped to HTTP responses.

Each error carries a fixed public ``message`` and an internal ``reason``
that is only ever logged.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for auth failures surfaced to the HTTP boundary."""

    status_code: int = 400
    message: str = "Bad Request"

    def __init__(self, reason: str = "") -> None:
        super().__init__(reason or self.message)
        self.reason = reason or self.message


class BadRequestError(AuthError):
    """Malformed or missing input (400)."""

    status_code = 400
    message = "Bad Request"


class UnauthorizedError(AuthError):
    """Failed authentication or a bad, expired or forged token (401)."""

    status_code = 401
    message = "Unauthorized"

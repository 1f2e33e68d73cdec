"""
Domain Errors
=============

Services raise these instead of HTTP exceptions so they stay usable outside a
request. main.py registers one handler that turns them into JSON responses:

    ValidationFailed   -> 400
    InvalidCredentials -> 401
    InactiveUser       -> 403
    NotFound           -> 404
"""

from typing import Optional


class HermetiaError(Exception):
    """Base class for every error the API reports back to the client."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[list[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_content(self) -> dict:
        content = {"detail": self.message}
        if self.errors:
            content["errors"] = self.errors
        return content


class ValidationFailed(HermetiaError):
    status_code = 400


class InvalidCredentials(HermetiaError):
    status_code = 401


class InactiveUser(HermetiaError):
    status_code = 403


class NotFound(HermetiaError):
    status_code = 404

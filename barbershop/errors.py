# barbershop/errors.py

from typing import Optional


class AppError(Exception):
    """Base class for errors rendered to API callers as {"message": ...}."""

    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.code:
            body["code"] = self.code
        return body


class ValidationError(AppError):
    status_code = 400


class Unauthenticated(AppError):
    status_code = 401


class Forbidden(AppError):
    status_code = 403


class NotFound(AppError):
    status_code = 404


class Conflict(AppError):
    # duplicates are reported as plain bad requests
    status_code = 400


class InvalidTransition(AppError):
    status_code = 409

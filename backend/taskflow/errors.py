from __future__ import annotations

from typing import Any


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, *, payload: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        # Extra top-level keys rendered next to "error" in the response body.
        self.payload = payload


class BadRequestError(AppError):
    status_code = 400


class ExpiredError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InternalError(AppError):
    status_code = 500

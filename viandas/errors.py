"""Error types raised by services and mapped to HTTP responses in main."""
from typing import List


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class DomainError(AppError):
    """Business rule violation (non-positive price, deleting a delivered order...)."""

    status_code = 400


def field_errors(errors: List[dict]) -> List[dict]:
    """Flatten pydantic error dicts into ``[{"field": ..., "message": ...}]``."""
    out = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ())]
        out.append({"field": ".".join(loc), "message": err.get("msg", "invalid value")})
    return out

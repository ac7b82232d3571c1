"""Domain error type shared by services and the HTTP layer.

A single exception class carries an ``ErrorKind`` tag; the HTTP layer looks
up the status code from the tag in one place instead of catching a family of
subclasses.
"""
from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    UNPROCESSABLE_ENTITY = "unprocessable_entity"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.UNPROCESSABLE_ENTITY: 422,
}

DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.NOT_FOUND: "Not found",
    ErrorKind.CONFLICT: "Conflict",
    ErrorKind.BAD_REQUEST: "Bad request",
    ErrorKind.UNAUTHORIZED: "Unauthorized",
    ErrorKind.FORBIDDEN: "Forbidden",
    ErrorKind.UNPROCESSABLE_ENTITY: "Unprocessable entity",
}


class AppError(Exception):
    """An expected failure with a kind and a client-safe message."""

    def __init__(self, kind: ErrorKind, message: str | None = None):
        self.kind = kind
        self.message = message or DEFAULT_MESSAGES[kind]
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_KIND[self.kind]

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value!r}, message={self.message!r})"


def not_found(message: str | None = None) -> AppError:
    return AppError(ErrorKind.NOT_FOUND, message)


def conflict(message: str | None = None) -> AppError:
    return AppError(ErrorKind.CONFLICT, message)


def unauthorized(message: str | None = None) -> AppError:
    return AppError(ErrorKind.UNAUTHORIZED, message)

"""Base class for domain errors surfaced to API callers."""

import typing as t
from enum import StrEnum


class ErrorCategory(StrEnum):
    VALIDATION = "validation"
    AUTHORIZATION = "authorization"
    STATE_CONFLICT = "state_conflict"
    UNAVAILABLE = "unavailable"
    CONFIGURATION_DISABLED = "configuration_disabled"


_STATUS_BY_CATEGORY: dict[ErrorCategory, int] = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.STATE_CONFLICT: 409,
    ErrorCategory.UNAVAILABLE: 503,
    ErrorCategory.CONFIGURATION_DISABLED: 403,
}


class DomainError(Exception):
    """An error with a stable machine-readable code.

    Subclasses set `code`, `category` and a default message. Only errors in the UNAVAILABLE
    category are retryable.
    """

    code: t.ClassVar[str] = "INTERNAL_ERROR"
    category: t.ClassVar[ErrorCategory] = ErrorCategory.VALIDATION
    default_message: t.ClassVar[str] = "The request could not be processed."
    status_code: t.ClassVar[int | None] = None

    def __init__(self, message: str | None = None, **details: t.Any) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.category == ErrorCategory.UNAVAILABLE

    @property
    def http_status(self) -> int:
        return self.status_code or _STATUS_BY_CATEGORY[self.category]

    def as_dict(self) -> dict[str, t.Any]:
        data: dict[str, t.Any] = {"code": self.code, "message": self.message, "retryable": self.retryable}
        if self.details:
            data["details"] = self.details
        return data

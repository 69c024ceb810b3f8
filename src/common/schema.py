"""Common schemas for the API."""

import typing as t

from ninja import Schema


class VersionResponse(Schema):
    version: str


class ResponseOk(Schema):
    status: t.Literal["ok"] = "ok"


class ResponseMessage(Schema):
    message: str


class ErrorResponse(Schema):
    code: str
    message: str
    retryable: bool = False
    details: dict[str, t.Any] | None = None

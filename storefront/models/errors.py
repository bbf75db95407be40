"""Error types shared by clients, services and routes."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel

ErrorKind = Literal["transport", "backend", "user", "data"]


class ErrorPayload(BaseModel):
    """The only error shape exposed past the adapter boundary."""

    message: str


class StorefrontError(Exception):
    """Raised by the storefront client for every failed backend call."""

    def __init__(self, message: str, *, kind: ErrorKind = "backend") -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind


class NotFoundError(StorefrontError):
    """Requested product, variant or line does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, kind="user")


def _join_messages(entries: Any) -> str | None:
    if not isinstance(entries, list) or not entries:
        return None
    messages = [
        str(entry.get("message"))
        for entry in entries
        if isinstance(entry, dict) and entry.get("message")
    ]
    return ", ".join(messages) or None


def normalize_error(error: Any) -> ErrorPayload:
    """Collapse any failure into a ``{message}`` payload."""

    if isinstance(error, ErrorPayload):
        return error
    if isinstance(error, str):
        return ErrorPayload(message=error or "An unknown error occurred")
    if isinstance(error, StorefrontError):
        return ErrorPayload(message=error.message)
    if isinstance(error, dict):
        message = (
            error.get("message")
            or _join_messages(error.get("userErrors"))
            or _join_messages(error.get("errors"))
        )
        return ErrorPayload(message=message or "An unknown error occurred")
    if isinstance(error, BaseException):
        return ErrorPayload(message=str(error) or error.__class__.__name__)
    return ErrorPayload(message="An unknown error occurred")

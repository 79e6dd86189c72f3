"""Error responses for the contentsync API.

Every error body uses the same Result/Message structure. Domain exceptions
from contentsync.errors map to HTTP statuses here; routers just raise.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import Enum

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from contentsync.errors import (
    CacheError,
    ChannelNotFoundError,
    ContentNotFoundError,
    ContentSyncError,
    ContentValidationError,
    IngestionFailedError,
    SyncInProgressError,
)

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Type of message in error response."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    EXCEPTION = "Exception"


class Message(BaseModel):
    """One error message."""

    model_config = {"extra": "forbid", "populate_by_name": True}

    code: str
    message_type: MessageType = Field(alias="messageType")
    text: str
    timestamp: str | None = None


class Result(BaseModel):
    """Result wrapper for errors."""

    model_config = {"extra": "forbid"}

    messages: list[Message]


# exception type -> (status, code); first match wins
_STATUS_MAP: list[tuple[type[ContentSyncError], int, str]] = [
    (SyncInProgressError, 409, "Conflict"),
    (ChannelNotFoundError, 502, "BadGateway"),
    (IngestionFailedError, 502, "BadGateway"),
    (ContentNotFoundError, 404, "NotFound"),
    (ContentValidationError, 400, "BadRequest"),
    (CacheError, 503, "ServiceUnavailable"),
]


def error_response(
    status_code: int,
    code: str,
    text: str,
    message_type: MessageType = MessageType.ERROR,
) -> JSONResponse:
    result = Result(
        messages=[
            Message(
                code=code,
                messageType=message_type,
                text=text,
                timestamp=datetime.now(UTC).isoformat(),
            )
        ]
    )
    return JSONResponse(status_code=status_code, content=result.model_dump(by_alias=True))


async def contentsync_exception_handler(request: Request, exc: ContentSyncError) -> JSONResponse:
    """Exception handler for domain errors."""
    for exc_type, status_code, code in _STATUS_MAP:
        if isinstance(exc, exc_type):
            return error_response(status_code, code, str(exc))

    logger.error(f"Unmapped domain error on {request.url.path}: {exc}")
    return error_response(500, "InternalServerError", str(exc), MessageType.EXCEPTION)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for unexpected errors."""
    logger.exception(f"Unhandled error on {request.url.path}")
    return error_response(
        500,
        "InternalServerError",
        "An unexpected error occurred",
        MessageType.EXCEPTION,
    )

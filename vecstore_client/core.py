"""Service status handling, client errors and the base of every client."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from .meta_cache import META_CACHE


class ErrorCode(enum.IntEnum):
    """Status codes reported by the server."""

    SUCCESS = 0
    UNEXPECTED_ERROR = 1
    CONNECT_FAILED = 2
    PERMISSION_DENIED = 3
    COLLECTION_NOT_EXISTS = 4
    ILLEGAL_ARGUMENT = 5
    RATE_LIMIT = 49


@dataclass
class Status:
    """Outcome of a server call."""

    error_code: int = ErrorCode.SUCCESS
    reason: str = ""


class ServiceError(Exception):
    """The server answered with a status other than success."""

    def __init__(self, code: int, reason: str = "") -> None:
        self.code = code
        self.reason = reason
        super().__init__(f"service return error (code {int(code)}): {reason}")


class ClientNotReadyError(RuntimeError):
    """The client has no service connection."""

    def __init__(self, message: str = "client not ready") -> None:
        super().__init__(message)


def handle_status(status: Status | None) -> None:
    """Raise ServiceError unless the status reports success; a missing status counts as success."""
    if status is None:
        return
    if status.error_code != ErrorCode.SUCCESS:
        raise ServiceError(status.error_code, status.reason)


def _status_of(response: Any) -> Status | None:
    return getattr(response, "status", None)


class BaseClient:
    """Holds the service stub that every operation talks to."""

    def __init__(self, service: Any) -> None:
        self.service = service
        self.meta_cache = META_CACHE

    def _require_service(self) -> Any:
        if self.service is None:
            raise ClientNotReadyError()
        return self.service

    def _check_collection_exists(self, collection_name: str) -> None:
        response = self._require_service().has_collection(
            db_name="", collection_name=collection_name
        )
        handle_status(_status_of(response))
        if not response.value:
            raise ValueError(f"collection {collection_name} does not exist")

    def _describe_collection(self, collection_name: str) -> Any:
        response = self._require_service().describe_collection(
            db_name="", collection_name=collection_name
        )
        handle_status(_status_of(response))
        return response
"""Watch events that report errors to a watching client."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

STATUS_FAILURE = "Failure"
REASON_INTERNAL_ERROR = "InternalError"
ERROR_EVENT = "ERROR"


@dataclass
class Status:
    """The outcome of an API operation."""

    status: str = ""
    message: str = ""
    reason: str = ""
    code: int = 0


class StatusError(Exception):
    """An error that carries an API status."""

    def __init__(self, status: Status) -> None:
        super().__init__(status.message)
        self.status = status


@dataclass
class WatchEvent:
    type: str
    object: Any


def new_error_event(err: BaseException | Status) -> WatchEvent:
    """Wrap an error as an ERROR watch event carrying a status object."""
    if isinstance(err, Status):
        obj = err
    elif isinstance(err, StatusError):
        obj = err.status
    else:
        obj = Status(
            status=STATUS_FAILURE,
            message=str(err),
            reason=REASON_INTERNAL_ERROR,
            code=HTTPStatus.INTERNAL_SERVER_ERROR.value,
        )
    return WatchEvent(type=ERROR_EVENT, object=obj)
"""
Per-attempt outcome passed to lifecycle callbacks.

An attempt ends with exactly one of a received response or a raised
transport error. The two variants are separate frozen dataclasses so that
consumers dispatch with ``isinstance`` or ``match`` instead of checking
which field is None.
"""

from dataclasses import dataclass
from typing import TypeAlias

import httpx


@dataclass(frozen=True)
class ResponseOutcome:
    """The attempt produced a response (any status)."""

    response: httpx.Response

    def __str__(self) -> str:
        return f"<Response [{self.response.status_code}]>"


@dataclass(frozen=True)
class ExceptionOutcome:
    """The attempt raised a transport error."""

    exception: BaseException

    def __str__(self) -> str:
        return f"{type(self.exception).__name__}: {self.exception}"


ResponseOrException: TypeAlias = ResponseOutcome | ExceptionOutcome


def of_response(response: httpx.Response) -> ResponseOrException:
    return ResponseOutcome(response)


def of_exception(exception: BaseException) -> ResponseOrException:
    return ExceptionOutcome(exception)

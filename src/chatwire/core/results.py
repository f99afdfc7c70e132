"""Typed outcomes for chatwire.

Every send path reports exactly one of four variants instead of raising:

* ``Success`` wraps the decoded payload.
* ``ApiError`` is a logical failure reported by the remote service.
* ``TransportFailure`` carries the transport's exception unchanged.
* ``DecodeFailure`` means a payload arrived but matched no expected shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, NoReturn, TypeVar, Union, assert_never

from chatwire.core.errors import ChatwireError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    @property
    def error_kind(self) -> None:
        return None

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class ApiError:
    """Error object returned by the service: ``{"error": {...}}``."""

    message: str
    type: str
    param: str | None = None
    code: str | int | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def error_kind(self) -> ErrorKind:
        return ErrorKind.API

    def as_error(self) -> ChatwireError:
        return ChatwireError(ErrorKind.API, f"{self.type}: {self.message}")

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"message": self.message, "type": self.type}
        if self.param is not None:
            payload["param"] = self.param
        if self.code is not None:
            payload["code"] = self.code
        return payload

    def unwrap(self) -> NoReturn:
        raise self.as_error()


@dataclass(frozen=True)
class TransportFailure:
    cause: BaseException

    @property
    def ok(self) -> bool:
        return False

    @property
    def error_kind(self) -> ErrorKind:
        return ErrorKind.TRANSPORT

    def as_error(self) -> ChatwireError:
        return ChatwireError(ErrorKind.TRANSPORT, f"{type(self.cause).__name__}: {self.cause}", cause=self.cause)

    def unwrap(self) -> NoReturn:
        raise self.as_error() from self.cause


@dataclass(frozen=True)
class DecodeFailure:
    cause: Exception
    raw: str | None = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def error_kind(self) -> ErrorKind:
        return ErrorKind.DECODE

    def as_error(self) -> ChatwireError:
        return ChatwireError(ErrorKind.DECODE, f"undecodable payload: {self.cause}", cause=self.cause)

    def unwrap(self) -> NoReturn:
        raise self.as_error() from self.cause


ApiResult = Union[Success[T], ApiError, TransportFailure, DecodeFailure]


def describe(result: ApiResult[Any]) -> str:
    """Short one-line summary used in log messages."""
    match result:
        case Success():
            return "success"
        case ApiError(message=message, type=error_type):
            return f"api error ({error_type}): {message}"
        case TransportFailure(cause=cause):
            return f"transport failure: {cause!r}"
        case DecodeFailure(cause=cause):
            return f"decode failure: {cause}"
        case _:
            assert_never(result)

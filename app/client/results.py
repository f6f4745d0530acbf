"""
Result types returned by client mutations.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def map(self, fn: Callable[[T], U]) -> "Success[U]":
        return Success(fn(self.value))


@dataclass(frozen=True)
class Failure:
    error: Exception

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return str(self.error)

    def map(self, fn: Callable) -> "Failure":
        return self


Result = Union[Success[T], Failure]


def capture(fn: Callable[..., T], *args, **kwargs) -> "Result[T]":
    """Run ``fn`` and wrap its return value or raised exception."""
    try:
        return Success(fn(*args, **kwargs))
    except Exception as exc:
        return Failure(exc)

"""
Result Type and Timestamps

Every fallible bucket operation returns Result[T, E] = Ok[T] | Err[E].
Errors are BucketError instances carried as values; callers branch on
is_ok()/is_err() instead of catching.

    result = await bucket.get_object("a.png")
    if result.is_err():
        return handle(result.error)
    obj = result.value
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Literal, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


# =============================================================================
# RESULT
# =============================================================================
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome holding `value`."""

    value: T

    def is_ok(self) -> Literal[True]:
        return True

    def is_err(self) -> Literal[False]:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Transform the value, keeping the Ok wrapper."""
        return Ok(fn(self.value))

    def flat_map(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain another fallible step."""
        return fn(self.value)


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome holding `error`; combinators pass it through."""

    error: E

    def is_ok(self) -> Literal[False]:
        return False

    def is_err(self) -> Literal[True]:
        return True

    def unwrap(self) -> Any:
        """
        Raise the carried error.

        Exceptions are re-raised as themselves so a test or script can
        let a typed failure propagate; anything else becomes RuntimeError.
        """
        if isinstance(self.error, BaseException):
            raise self.error
        raise RuntimeError(f"unwrap() on Err: {self.error!r}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[Any], U]) -> Err[E]:
        return self

    def flat_map(self, fn: Callable[[Any], Result[U, E]]) -> Err[E]:
        return self


Result = Union[Ok[T], Err[E]]


# =============================================================================
# TIMESTAMP
# =============================================================================
@dataclass(frozen=True, slots=True, order=True)
class Timestamp:
    """Wall-clock instant in nanoseconds since the epoch."""

    nanos: int

    @classmethod
    def now(cls) -> Timestamp:
        return cls(nanos=time.time_ns())

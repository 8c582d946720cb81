"""A value-or-error container with combinators for chaining operations."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Iterator, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")

_MISSING: Any = object()


def _caller_location(depth: int) -> tuple[str, int, int]:
    frame = inspect.currentframe()
    try:
        for _ in range(depth + 1):
            if frame is None:
                break
            frame = frame.f_back
        if frame is None:
            return ("", 0, 0)
        return (frame.f_code.co_filename, frame.f_lineno, 0)
    finally:
        del frame


@dataclass(frozen=True, eq=False)
class Error:
    """An error code with a message and the place where it was created."""

    code: int
    message: str
    file: Optional[str] = field(default=None)
    line: int = 0
    column: int = 0

    def __post_init__(self) -> None:
        if self.file is None:
            file, line, column = _caller_location(2)
            object.__setattr__(self, "file", file)
            object.__setattr__(self, "line", line)
            object.__setattr__(self, "column", column)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Error):
            return NotImplemented
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)

    def formatted_message(self) -> str:
        return f"Error {self.code}: {self.message} [{self.file}:{self.line}:{self.column}]"


def _describe(error: Any) -> str:
    formatter = getattr(error, "formatted_message", None)
    if callable(formatter):
        return formatter()
    return f"Error {getattr(error, 'code', 0)}: {getattr(error, 'message', error)}"


class ResultError(Exception):
    """Raised when a result is accessed for the side it does not hold."""

    def __init__(self, error: Any) -> None:
        super().__init__(_describe(error))
        self.error = error


class Result(Generic[T]):
    """Holds either a value or an error.

    A result made without a value (``ok()``) holds ``None`` as its value.
    """

    __slots__ = ("_value", "_error", "_is_error")

    def __init__(self, value: Any = _MISSING, *, error: Any = _MISSING) -> None:
        if (value is _MISSING) == (error is _MISSING) and value is not _MISSING:
            raise ValueError("a result holds either a value or an error, not both")
        if error is not _MISSING:
            self._value = None
            self._error = error
            self._is_error = True
        else:
            self._value = None if value is _MISSING else value
            self._error = None
            self._is_error = False

    def __repr__(self) -> str:
        if self._is_error:
            return f"Result(error={self._error!r})"
        return f"Result({self._value!r})"

    def __bool__(self) -> bool:
        return not self._is_error

    def __iter__(self) -> Iterator[Any]:
        yield not self._is_error
        yield self._value
        yield self._error

    def has_value(self) -> bool:
        return not self._is_error

    def has_error(self) -> bool:
        return self._is_error

    def value(self) -> T:
        if self._is_error:
            raise ResultError(self._error)
        return self._value

    def error(self) -> Any:
        if not self._is_error:
            raise ResultError(Error(0, "Attempted to access error when result has value"))
        return self._error

    def unwrap(self) -> T:
        return self.value()

    def expect(self, message: str) -> T:
        if self._is_error:
            raise ResultError(Error(getattr(self._error, "code", 0), message))
        return self._value

    def value_or(self, default: T) -> T:
        return default if self._is_error else self._value

    def try_value(self) -> Optional[T]:
        return None if self._is_error else self._value

    def try_error(self) -> Any:
        return self._error if self._is_error else None

    def and_then(self, func: Callable[[T], "Result[U]"]) -> "Result[U]":
        if self._is_error:
            return Result(error=self._error)
        return func(self._value)

    def or_else(self, func: Callable[[Any], "Result[T]"]) -> "Result[T]":
        if self._is_error:
            return func(self._error)
        return self

    def map(self, func: Callable[[T], U]) -> "Result[U]":
        if self._is_error:
            return Result(error=self._error)
        return Result(func(self._value))

    def map_error(self, func: Callable[[Any], Any]) -> "Result[T]":
        if self._is_error:
            return Result(error=func(self._error))
        return Result(self._value)

    def inspect(self, func: Callable[[T], Any]) -> "Result[T]":
        if not self._is_error:
            func(self._value)
        return self

    def inspect_error(self, func: Callable[[Any], Any]) -> "Result[T]":
        if self._is_error:
            func(self._error)
        return self

    def match(self, on_value: Callable[[T], U], on_error: Callable[[Any], U]) -> U:
        if self._is_error:
            return on_error(self._error)
        return on_value(self._value)

    def transpose(self) -> Optional["Result[Any]"]:
        """Turn a result of an optional value into an optional result."""
        if self._is_error:
            return Result(error=self._error)
        if self._value is None:
            return None
        return Result(self._value)

    def flatten(self) -> "Result[Any]":
        """Remove one level of nesting from a result holding a result."""
        if self._is_error:
            return Result(error=self._error)
        if not isinstance(self._value, Result):
            raise TypeError("flatten requires a result that holds a result")
        return self._value


def ok(value: Any = None) -> Result[Any]:
    """Make a successful result."""
    return Result(value)


def err(code: int, message: str) -> Result[Any]:
    """Make a failed result whose error records the caller's location."""
    file, line, column = _caller_location(1)
    return Result(error=Error(code, message, file, line, column))
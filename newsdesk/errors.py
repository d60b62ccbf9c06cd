# newsdesk/errors.py
"""
Error taxonomy and the success/failure wrapper used between layers.

Lower layers (store, generation, ingestion) never let their own exceptions escape to the
assistant or the HTTP routes: they hand back a ``Result`` carrying either a value or an
error plus a human-readable message.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")


class NewsdeskError(Exception):
    """Base class for all errors raised inside newsdesk."""


class StorageError(NewsdeskError):
    pass


class GenerationError(NewsdeskError):
    pass


class NotConfiguredError(GenerationError):
    pass


class EmptyGenerationError(GenerationError):
    """The model answered, but with nothing usable."""


class IngestionError(NewsdeskError):
    pass


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def message(self) -> str:
        return str(self.error) if self.error is not None else ""

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception, message: Optional[str] = None) -> "Result[T]":
        # wrap with context-specific text but keep the original as __cause__
        if message:
            wrapped = type(error)(f"{message}: {error}") if isinstance(error, NewsdeskError) else NewsdeskError(f"{message}: {error}")
            wrapped.__cause__ = error
            error = wrapped
        return cls(error=error)

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if not self.ok:
            return Result(error=self.error)
        return Result(value=fn(self.value))  # type: ignore[arg-type]

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

"""
Explicit success/failure values for calls that are expected to fail sometimes.

Network errors, non-2xx responses and malformed upstream bodies come back as
Result.failure(reason) instead of exceptions. Exceptions stay reserved for
conditions nobody planned for.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    value: T | None = None
    error: str | None = None
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: str, status_code: int | None = None) -> "Result[T]":
        return cls(error=reason, status_code=status_code)

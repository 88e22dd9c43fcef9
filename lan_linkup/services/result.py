"""Outcome type returned by the service layer.

Expected business outcomes (missing rows, ownership, duplicates, a full party)
come back as a failed ``Result`` instead of an exception; routers turn the
``Failure`` kind into an HTTP status. Only infrastructure faults raise.
"""
import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Failure(str, enum.Enum):
    not_found = "not_found"
    forbidden = "forbidden"
    conflict = "conflict"
    party_full = "party_full"
    invalid = "invalid"


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    failure: Optional[Failure] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure, message: str) -> "Result[T]":
        return cls(failure=failure, message=message)

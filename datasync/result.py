"""Result values returned by refresh operations."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    reason: str
    error: Any = None

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]

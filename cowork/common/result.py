"""
Result types for operations that report instead of raising.

Design:
    - Ok / Err: single outcome of a controller operation.
    - BatchResult: best-effort fan-out (cascades, bulk assignment) with the
      items that worked and the items that failed together with their error.
    - CascadeReport: a parent delete plus the BatchResult of its children.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, List, Optional, Tuple, TypeVar, Union


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    message: str
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        if self.error is not None:
            raise self.error
        raise RuntimeError(self.message)


Result = Union[Ok[T], Err]


@dataclass
class BatchResult(Generic[T]):
    succeeded: List[T] = field(default_factory=list)
    failed: List[Tuple[T, BaseException]] = field(default_factory=list)
    skipped: List[T] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed

    def merge(self, other: "BatchResult[T]") -> None:
        self.succeeded.extend(other.succeeded)
        self.failed.extend(other.failed)
        self.skipped.extend(other.skipped)


@dataclass
class CascadeReport:
    """Outcome of deleting `target` (a local id) and its dependents."""

    target: int
    children: BatchResult = field(default_factory=BatchResult)
    dependents: BatchResult = field(default_factory=BatchResult)

    @property
    def complete(self) -> bool:
        return self.children.complete and self.dependents.complete


__all__ = ["Ok", "Err", "Result", "BatchResult", "CascadeReport"]

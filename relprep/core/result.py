"""Result type for explicit error handling.

Every fallible step of a release returns ``Ok(value)`` or ``Err(error)``
instead of raising, so the orchestrator can stop at the first failure and
hand the collaborator's diagnostic to the CLI untouched.

Usage:
    match repo.tag_exists("v1.2.0"):
        case Ok(True):
            ...
        case Ok(False):
            ...
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful outcome carrying ``value``."""

    value: T

    def map_err(self, f: Callable[[E], F]) -> Ok[T]:
        return self

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed outcome carrying ``error``."""

    error: E

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Transform the contained error, e.g. a git failure into a release error."""
        return Err(f(self.error))

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]

"""Core types shared across moonstone: evolutions, predicates, results."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, TypeAlias

from pydantic import BaseModel

from moonstone.exceptions import MoonStoneError

# An evolution is any zero-argument callable; failure is signalled by raising.
Evolution: TypeAlias = Callable[[], object]
EvolutionPredicate: TypeAlias = Callable[[], bool]


class EvolutionAction(ABC):
    """Base class for evolutions written as objects rather than functions.

    Instances are callable, so they register anywhere a plain function does.
    """

    description: str | None = None

    @abstractmethod
    def run(self) -> None:
        """Apply the evolution. Raise to signal failure."""

    def __call__(self) -> None:
        self.run()


# ── Results ──────────────────────────────────────────────────────────────────


class EvolutionResult(BaseModel):
    """Outcome of a phase or of a whole evolve() call."""

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    error: MoonStoneError | None = None

    @classmethod
    def success(cls) -> EvolutionResult:
        return cls()

    @classmethod
    def failure(cls, error: MoonStoneError) -> EvolutionResult:
        return cls(error=error)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def raise_for_failure(self) -> None:
        """Re-raise the carried error, if any."""
        if self.error is not None:
            raise self.error

    def __bool__(self) -> bool:
        return self.succeeded

    def __str__(self) -> str:
        return "succeeded" if self.error is None else f"failed: {self.error}"


def combine_preferring_first_failure(
    first: EvolutionResult, second: EvolutionResult
) -> EvolutionResult:
    """Merge two already-computed results.

    The first failure wins; if only the second failed, it is returned;
    otherwise the (successful) first result is returned.
    """
    if first.failed:
        return first
    if second.failed:
        return second
    return first

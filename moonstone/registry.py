"""Evolution Registry: the evolutions an engine knows about.

Two collections:
- version-keyed: one evolution per target version, unordered; sorted on
  demand before every version phase.
- predicate-keyed: (predicate, description, evolution) triples kept in
  registration order; duplicates are allowed and run independently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from moonstone.types import Evolution, EvolutionPredicate
from moonstone.version import VersionLike, VersionValue

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PredicateEvolution:
    predicate: EvolutionPredicate
    evolution: Evolution
    description: str | None = None


class EvolutionRegistry:
    """Holds version-keyed and predicate-keyed evolutions."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._by_version: dict[VersionValue, Evolution] = {}
        self._by_predicate: list[PredicateEvolution] = []
        self._logger = logger or _logger

    def register_by_version(self, version: VersionLike, evolution: Evolution) -> EvolutionRegistry:
        """Register an evolution that runs once the stored version crosses ``version``.

        Raises InvalidVersionFormat if the version cannot be parsed. A second
        registration for an equal version replaces the first.
        """
        key = VersionValue.coerce(version)
        if key in self._by_version:
            self._logger.warning(
                "An evolution has already been added for the stage %s. Will be overridden", key
            )
            # Drop the old key so the latest spelling (e.g. "1.0" vs "1.0.0") is kept
            del self._by_version[key]
        self._by_version[key] = evolution
        return self

    def register_by_predicate(
        self,
        predicate: EvolutionPredicate,
        evolution: Evolution,
        description: str | None = None,
    ) -> EvolutionRegistry:
        """Register an evolution that runs on every evolve() where ``predicate()`` is true."""
        self._by_predicate.append(
            PredicateEvolution(predicate=predicate, evolution=evolution, description=description)
        )
        return self

    def sorted_by_version(self) -> list[tuple[VersionValue, Evolution]]:
        return sorted(self._by_version.items(), key=lambda item: item[0])

    @property
    def version_evolutions(self) -> Mapping[VersionValue, Evolution]:
        return MappingProxyType(self._by_version)

    @property
    def predicate_evolutions(self) -> tuple[PredicateEvolution, ...]:
        return tuple(self._by_predicate)

    def __len__(self) -> int:
        return len(self._by_version) + len(self._by_predicate)

"""Evolution Engine: applies pending evolutions at application startup.

An evolve() call runs two phases:

1. Version phase: compares the running version with the version stored
   by the last successful run. On upgrade, every version-keyed evolution
   newer than the stored version runs in ascending order, and the stored
   version advances after each one, so a failure (or a crash) resumes from
   the last evolution that completed.
2. Predicate phase: every predicate-keyed evolution whose predicate holds
   right now runs, in registration order. Nothing is persisted; a predicate
   that stays true re-runs its evolution on every call.

Both phases always run. The reported result is the first failure in phase
order, or success. Evolutions are at-least-once: one interrupted before its
progress is stored runs again next time, so they should be re-runnable.

evolve() is meant to be called once, from a single thread, at startup.
Concurrent calls on the same store are not supported.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from moonstone.config import MoonStoneSettings, settings as default_settings
from moonstone.exceptions import (
    CouldNotParseCurrentVersion,
    EvolutionBasedOnPredicateFailed,
    EvolutionBasedOnVersionFailed,
    InvalidVersionFormat,
    ProgressStoreError,
)
from moonstone.registry import EvolutionRegistry
from moonstone.store import JsonFileProgressStore, ProgressStore
from moonstone.types import (
    Evolution,
    EvolutionPredicate,
    EvolutionResult,
    combine_preferring_first_failure,
)
from moonstone.version import VersionLike, VersionValue
from moonstone.version_source import StaticVersionSource, VersionSource

_logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Evolution)


class MoonStone:
    """Runs registered evolutions against a persisted progress record.

    ``version_source`` may be a VersionSource or a literal version string.
    ``store`` defaults to a JSON file at ``settings.state_path``.
    """

    def __init__(
        self,
        version_source: VersionSource | str,
        store: ProgressStore | None = None,
        prefix: str = "MoonStone",
        run_predicates_before_version: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        if isinstance(version_source, str):
            version_source = StaticVersionSource(version_source)
        self._version_source = version_source
        self._store = store if store is not None else JsonFileProgressStore(default_settings.state_path)
        self.prefix = prefix
        self.run_predicates_before_version = run_predicates_before_version
        self._logger = logger or _logger
        self.registry = EvolutionRegistry(logger=self._logger)

    @classmethod
    def from_settings(
        cls,
        version_source: VersionSource | str,
        settings: MoonStoneSettings | None = None,
        store: ProgressStore | None = None,
        logger: logging.Logger | None = None,
    ) -> MoonStone:
        """Build an engine configured from MOONSTONE_* environment settings."""
        cfg = settings or default_settings
        return cls(
            version_source,
            store=store if store is not None else JsonFileProgressStore(cfg.state_path),
            prefix=cfg.prefix,
            run_predicates_before_version=cfg.run_predicates_before_version,
            logger=logger,
        )

    @property
    def version_key(self) -> str:
        return f"{self.prefix}.version"

    @property
    def store(self) -> ProgressStore:
        return self._store

    # ── Registration ─────────────────────────────────────────────

    def register_by_version(self, version: VersionLike, evolution: Evolution) -> MoonStone:
        """Register ``evolution`` for ``version``. Returns self for chaining."""
        self.registry.register_by_version(version, evolution)
        return self

    def register_by_predicate(
        self,
        predicate: EvolutionPredicate,
        evolution: Evolution,
        description: str | None = None,
    ) -> MoonStone:
        """Register ``evolution`` to run whenever ``predicate()`` holds."""
        self.registry.register_by_predicate(predicate, evolution, description)
        return self

    def on_version(self, version: VersionLike) -> Callable[[E], E]:
        """Decorator form of register_by_version.

        The version is parsed immediately, so a bad version fails at import.
        """
        VersionValue.coerce(version)

        def decorator(evolution: E) -> E:
            self.register_by_version(version, evolution)
            return evolution

        return decorator

    def when(
        self, predicate: EvolutionPredicate, description: str | None = None
    ) -> Callable[[E], E]:
        """Decorator form of register_by_predicate.

        The description defaults to the decorated function's name.
        """

        def decorator(evolution: E) -> E:
            self.register_by_predicate(
                predicate, evolution, description or getattr(evolution, "__name__", None)
            )
            return evolution

        return decorator

    # ── Progress record ──────────────────────────────────────────

    def stored_version(self) -> VersionValue | None:
        """The version recorded by the last run, or None before the first run.

        Raises InvalidVersionFormat if the record is not a version.
        """
        raw = self._store.get_string(self.version_key)
        return VersionValue.parse(raw) if raw is not None else None

    def set_stored_version(self, version: VersionLike) -> None:
        self._store.set_string(self.version_key, str(VersionValue.coerce(version)))

    def reset(self) -> None:
        """Forget progress; the next evolve() is treated as a first run."""
        self._store.delete(self.version_key)

    def current_version(self) -> VersionValue:
        """Raises CouldNotParseCurrentVersion."""
        raw = self._version_source.current_version_string()
        try:
            return VersionValue.parse(raw)
        except InvalidVersionFormat as e:
            raise CouldNotParseCurrentVersion(raw, e.reason) from e

    # ── Running ──────────────────────────────────────────────────

    def evolve(self) -> EvolutionResult:
        """Run both phases and report the first failure, if any."""
        if self.run_predicates_before_version:
            first = self.evolve_with_predicates()
            second = self.evolve_with_versions()
        else:
            first = self.evolve_with_versions()
            second = self.evolve_with_predicates()
        return combine_preferring_first_failure(first, second)

    def evolve_with_versions(self) -> EvolutionResult:
        try:
            return self._run_version_evolutions()
        except ProgressStoreError as e:
            self._logger.error("%s. Version evolutions aborted.", e)
            return EvolutionResult.failure(e)

    def _run_version_evolutions(self) -> EvolutionResult:
        try:
            current = self.current_version()
        except CouldNotParseCurrentVersion as e:
            self._logger.error("%s. Version evolutions skipped.", e)
            return EvolutionResult.failure(e)

        stored = self._store.get_string(self.version_key)
        if stored is None:
            self._logger.info("No previous version recorded; starting from %s", current)
            self._store.set_string(self.version_key, str(current))
            previous = current
        else:
            try:
                previous = VersionValue.parse(stored)
            except InvalidVersionFormat as e:
                self._logger.error(
                    "Stored version under %s is invalid: %s. Version evolutions skipped.",
                    self.version_key,
                    e,
                )
                return EvolutionResult.failure(e)

        if not previous < current:
            self._logger.debug("No upgrade (%s -> %s); no version evolutions to run", previous, current)
            return EvolutionResult.success()

        self._logger.debug("Upgrade detected: %s -> %s", previous, current)
        for version, evolution in self.registry.sorted_by_version():
            if not previous < version:
                continue
            try:
                evolution()
            except Exception as e:
                self._logger.error(
                    "Evolution to %s failed: %s. The version will be locked to %s. "
                    "Aborting evolutions.",
                    version,
                    e,
                    previous,
                )
                error = EvolutionBasedOnVersionFailed(e, str(version))
                error.__cause__ = e
                return EvolutionResult.failure(error)
            self._store.set_string(self.version_key, str(version))
            previous = version
            self._logger.info("Applied evolution for version %s", version)

        return EvolutionResult.success()

    def evolve_with_predicates(self) -> EvolutionResult:
        for entry in self.registry.predicate_evolutions:
            label = entry.description or "<undescribed predicate>"
            try:
                if not entry.predicate():
                    self._logger.debug("Predicate for %s is false; skipped", label)
                    continue
                entry.evolution()
            except Exception as e:
                self._logger.error("Evolution %s failed: %s. Aborting evolutions.", label, e)
                error = EvolutionBasedOnPredicateFailed(e, entry.description)
                error.__cause__ = e
                return EvolutionResult.failure(error)
            self._logger.info("Applied evolution %s", label)
        return EvolutionResult.success()

"""moonstone: run one-time and conditional evolutions when an application upgrades."""

from importlib.metadata import PackageNotFoundError, version as _dist_version

from moonstone.engine import MoonStone
from moonstone.exceptions import (
    CouldNotParseCurrentVersion,
    EvolutionBasedOnPredicateFailed,
    EvolutionBasedOnVersionFailed,
    EvolutionFailed,
    InvalidVersionFormat,
    MoonStoneError,
    ProgressStoreError,
)
from moonstone.registry import EvolutionRegistry, PredicateEvolution
from moonstone.store import InMemoryProgressStore, JsonFileProgressStore, ProgressStore
from moonstone.types import (
    Evolution,
    EvolutionAction,
    EvolutionPredicate,
    EvolutionResult,
    combine_preferring_first_failure,
)
from moonstone.version import VersionValue, compare
from moonstone.version_source import PackageVersionSource, StaticVersionSource, VersionSource

try:
    __version__ = _dist_version("moonstone")
except PackageNotFoundError:
    __version__ = "0.1.0"  # fallback for development

__all__ = [
    "MoonStone",
    "EvolutionRegistry",
    "PredicateEvolution",
    "Evolution",
    "EvolutionAction",
    "EvolutionPredicate",
    "EvolutionResult",
    "combine_preferring_first_failure",
    "VersionValue",
    "compare",
    "VersionSource",
    "StaticVersionSource",
    "PackageVersionSource",
    "ProgressStore",
    "InMemoryProgressStore",
    "JsonFileProgressStore",
    "MoonStoneError",
    "InvalidVersionFormat",
    "CouldNotParseCurrentVersion",
    "EvolutionFailed",
    "EvolutionBasedOnVersionFailed",
    "EvolutionBasedOnPredicateFailed",
    "ProgressStoreError",
]

"""Where the running application's version comes from."""

from __future__ import annotations

from abc import ABC, abstractmethod
from importlib.metadata import PackageNotFoundError, version


def join_version_and_build(short_version: str, build: str | None) -> str:
    """"1.2.0" + "57" -> "1.2.0+57"; identical or missing build -> "1.2.0"."""
    if not build or build == short_version:
        return short_version
    return f"{short_version}+{build}"


class VersionSource(ABC):
    @abstractmethod
    def current_version_string(self) -> str:
        """Return the version string of the running application."""


class StaticVersionSource(VersionSource):
    """A fixed version, typically the application's own __version__."""

    def __init__(self, short_version: str, build: str | None = None) -> None:
        self.short_version = short_version
        self.build = build

    def current_version_string(self) -> str:
        return join_version_and_build(self.short_version, self.build)


class PackageVersionSource(VersionSource):
    """Reads the version of an installed distribution.

    Raises PackageNotFoundError when the distribution is not installed;
    pass ``fallback`` to use a literal version instead (development
    checkouts, as agos does for its own __version__).
    """

    def __init__(
        self,
        distribution: str,
        build: str | None = None,
        fallback: str | None = None,
    ) -> None:
        self.distribution = distribution
        self.build = build
        self.fallback = fallback

    def current_version_string(self) -> str:
        try:
            short_version = version(self.distribution)
        except PackageNotFoundError:
            if self.fallback is None:
                raise
            short_version = self.fallback
        return join_version_and_build(short_version, self.build)

"""Custom exception hierarchy for moonstone."""

from __future__ import annotations


class MoonStoneError(Exception):
    """Base for all moonstone errors."""


class InvalidVersionFormat(MoonStoneError, ValueError):
    """A version string could not be parsed."""

    def __init__(self, text: str, reason: str = "") -> None:
        self.text = text
        self.reason = reason
        message = f"Invalid version format: {text!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class CouldNotParseCurrentVersion(InvalidVersionFormat):
    """The running application's version string could not be parsed."""


class EvolutionFailed(MoonStoneError):
    """An evolution raised while being applied."""

    def __init__(self, message: str, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(message)


class EvolutionBasedOnVersionFailed(EvolutionFailed):
    """An evolution registered for a version failed.

    The progress record stays at the last version that succeeded.
    """

    def __init__(self, cause: BaseException, version: str) -> None:
        self.version = version
        super().__init__(
            f"Evolution to version {version} failed: {type(cause).__name__}: {cause}",
            cause,
        )


class EvolutionBasedOnPredicateFailed(EvolutionFailed):
    """An evolution registered behind a predicate failed."""

    def __init__(self, cause: BaseException, description: str | None = None) -> None:
        self.description = description
        label = description or "<undescribed predicate>"
        super().__init__(
            f"Evolution '{label}' failed: {type(cause).__name__}: {cause}",
            cause,
        )


class ProgressStoreError(MoonStoneError):
    """The persisted progress record could not be read or written."""

"""Comparable version values: MAJOR.MINOR.PATCH with optional +BUILD.

Ordering looks at the numeric components only. Missing trailing components
count as zero, so "1.0" and "1.0.0" are the same version, and the build
identifier never takes part in comparison, equality or hashing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Union

from moonstone.exceptions import InvalidVersionFormat

_COMPONENT_RE = re.compile(r"[0-9]+")

VersionLike = Union["VersionValue", str]


@total_ordering
@dataclass(frozen=True, eq=False)
class VersionValue:
    """An immutable, parsed version.

    Usable as a dict key: versions that compare equal hash equal.
    """

    components: tuple[int, ...]
    build: str | None = field(default=None)

    def __post_init__(self) -> None:
        if not self.components:
            raise InvalidVersionFormat("", "no numeric components")
        if any(c < 0 for c in self.components):
            raise InvalidVersionFormat(
                ".".join(str(c) for c in self.components),
                "components must be non-negative",
            )

    @classmethod
    def parse(cls, text: str) -> VersionValue:
        """Parse "X.Y.Z" or "X.Y.Z+BUILD"."""
        if not isinstance(text, str):
            raise InvalidVersionFormat(repr(text), "not a string")
        raw = text.strip()
        if not raw:
            raise InvalidVersionFormat(text, "empty")

        numeric, sep, build = raw.partition("+")
        if sep and not build:
            raise InvalidVersionFormat(text, "empty build identifier")

        parts = numeric.split(".")
        for part in parts:
            if not _COMPONENT_RE.fullmatch(part):
                raise InvalidVersionFormat(text, f"bad component {part!r}")

        try:
            components = tuple(int(p) for p in parts)
        except ValueError as e:
            # int() refuses digit strings past sys.get_int_max_str_digits()
            raise InvalidVersionFormat(text, "component too long") from e
        return cls(components, build if sep else None)

    @classmethod
    def coerce(cls, value: VersionLike) -> VersionValue:
        if isinstance(value, VersionValue):
            return value
        return cls.parse(value)

    # ── Accessors ────────────────────────────────────────────────

    @property
    def major(self) -> int:
        return self._component(0)

    @property
    def minor(self) -> int:
        return self._component(1)

    @property
    def patch(self) -> int:
        return self._component(2)

    def _component(self, index: int) -> int:
        return self.components[index] if index < len(self.components) else 0

    def _key(self) -> tuple[int, ...]:
        # Trailing zeros stripped so "1.0" and "1.0.0" share a key
        parts = list(self.components)
        while parts and parts[-1] == 0:
            parts.pop()
        return tuple(parts)

    # ── Ordering ─────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionValue):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionValue):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    # ── Formatting ───────────────────────────────────────────────

    def __str__(self) -> str:
        numeric = ".".join(str(c) for c in self.components)
        return f"{numeric}+{self.build}" if self.build is not None else numeric

    def __repr__(self) -> str:
        return f"VersionValue('{self}')"


def compare(a: VersionLike, b: VersionLike) -> int:
    """Three-way comparison: -1 if a < b, 0 if equal, 1 if a > b.

    Strings are parsed first and may raise InvalidVersionFormat.
    """
    left = VersionValue.coerce(a)
    right = VersionValue.coerce(b)
    if left < right:
        return -1
    if left > right:
        return 1
    return 0

"""Shared test fixtures: in-memory store, engine factory, call recorder."""

from __future__ import annotations

import pytest

from moonstone.engine import MoonStone
from moonstone.store import InMemoryProgressStore


class CallRecorder:
    """Builds evolutions that record their name when run."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def action(self, name: str, fail: bool = False):
        def _run() -> None:
            self.calls.append(name)
            if fail:
                raise RuntimeError(f"{name} exploded")
        return _run


@pytest.fixture
def store():
    return InMemoryProgressStore()


@pytest.fixture
def recorder():
    return CallRecorder()


@pytest.fixture
def make_engine(store):
    def _factory(current: str, previous: str | None = None, **kwargs) -> MoonStone:
        if previous is not None:
            store.set_string(f"{kwargs.get('prefix', 'MoonStone')}.version", previous)
        return MoonStone(current, store=store, **kwargs)
    return _factory

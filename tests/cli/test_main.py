"""Tests for the moonstone CLI."""

import sys

import orjson
import pytest
import typer
from typer.testing import CliRunner

from moonstone.cli.main import app, load_target
from moonstone.engine import MoonStone

runner = CliRunner()


@pytest.fixture
def state(tmp_path):
    return tmp_path / "state.json"


def _stored(state, key="MoonStone.version"):
    return orjson.loads(state.read_bytes()).get(key)


# ── set-version / reset / status ────────────────────────────────

def test_set_version(state):
    result = runner.invoke(app, ["set-version", "1.2.0", "--state", str(state)])
    assert result.exit_code == 0
    assert _stored(state) == "1.2.0"


def test_set_version_with_prefix(state):
    result = runner.invoke(app, ["set-version", "1.2.0", "--state", str(state), "--prefix", "Acme"])
    assert result.exit_code == 0
    assert _stored(state, "Acme.version") == "1.2.0"


def test_set_version_rejects_garbage(state):
    result = runner.invoke(app, ["set-version", "latest", "--state", str(state)])
    assert result.exit_code == 1
    assert not state.exists()


def test_reset(state):
    runner.invoke(app, ["set-version", "1.2.0", "--state", str(state)])
    result = runner.invoke(app, ["reset", "--state", str(state)])
    assert result.exit_code == 0
    assert _stored(state) is None


def test_status_before_first_run(state):
    result = runner.invoke(app, ["status", "--state", str(state)])
    assert result.exit_code == 0
    assert "first run pending" in result.output


def test_status_upgrade_pending(state):
    runner.invoke(app, ["set-version", "1.0.0", "--state", str(state)])
    result = runner.invoke(app, ["status", "--state", str(state), "--app-version", "1.1.0"])
    assert result.exit_code == 0
    assert "1.1.0" in result.output
    assert "yes" in result.output


def test_status_bad_app_version(state):
    result = runner.invoke(app, ["status", "--state", str(state), "--app-version", "x.y"])
    assert result.exit_code == 1


# ── compare ─────────────────────────────────────────────────────

@pytest.mark.parametrize("a,b,symbol", [
    ("1.2.0", "1.3.0", "<"),
    ("2.0.0+100", "2.0.0+999", "="),
    ("1.10", "1.9.9", ">"),
])
def test_compare(a, b, symbol):
    result = runner.invoke(app, ["compare", a, b])
    assert result.exit_code == 0
    assert f"{a} {symbol} {b}" in result.output


def test_compare_invalid():
    result = runner.invoke(app, ["compare", "1.0", "one"])
    assert result.exit_code == 1


# ── evolve ──────────────────────────────────────────────────────

@pytest.fixture
def app_module(tmp_path, monkeypatch):
    """Write an importable module defining a MoonStone and a factory."""
    state = tmp_path / "app_state.json"
    source = f'''
from moonstone import MoonStone, JsonFileProgressStore

RAN = []

engine = MoonStone("1.1.0", store=JsonFileProgressStore({str(state)!r}))
engine.set_stored_version("1.0.0")
engine.register_by_version("1.1.0", lambda: RAN.append("1.1.0"))


def broken_factory():
    failing = MoonStone("1.1.0", store=JsonFileProgressStore({str(state)!r}), prefix="Broken")
    failing.set_stored_version("1.0.0")

    def explode():
        raise RuntimeError("boom")

    failing.register_by_version("1.1.0", explode)
    return failing
'''
    (tmp_path / "evolving_app.py").write_text(source, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    yield state
    sys.modules.pop("evolving_app", None)


def test_evolve_instance(app_module):
    result = runner.invoke(app, ["evolve", "evolving_app:engine"])
    assert result.exit_code == 0
    assert "Evolutions complete" in result.output
    assert sys.modules["evolving_app"].RAN == ["1.1.0"]
    assert _stored(app_module) == "1.1.0"


def test_evolve_factory_failure(app_module):
    result = runner.invoke(app, ["evolve", "evolving_app:broken_factory"])
    assert result.exit_code == 1
    assert "boom" in result.output
    assert _stored(app_module, "Broken.version") == "1.0.0"


def test_load_target_requires_colon():
    with pytest.raises(typer.BadParameter):
        load_target("no_colon_here")


def test_load_target_returns_instance(app_module):
    assert isinstance(load_target("evolving_app:engine"), MoonStone)

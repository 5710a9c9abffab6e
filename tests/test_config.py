"""Tests for settings and settings-driven engines."""

from moonstone.config import MoonStoneSettings
from moonstone.engine import MoonStone
from moonstone.store import InMemoryProgressStore, JsonFileProgressStore


def test_defaults():
    cfg = MoonStoneSettings()
    assert cfg.prefix == "MoonStone"
    assert cfg.run_predicates_before_version is False


def test_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("MOONSTONE_PREFIX", "Acme")
    monkeypatch.setenv("MOONSTONE_RUN_PREDICATES_BEFORE_VERSION", "true")
    monkeypatch.setenv("MOONSTONE_STATE_PATH", str(tmp_path / "s.json"))
    cfg = MoonStoneSettings()
    assert cfg.prefix == "Acme"
    assert cfg.run_predicates_before_version is True
    assert cfg.state_path == tmp_path / "s.json"


def test_from_settings_uses_file_store(tmp_path):
    cfg = MoonStoneSettings(prefix="Acme", state_path=tmp_path / "s.json")
    engine = MoonStone.from_settings("1.0.0", settings=cfg)

    assert engine.version_key == "Acme.version"
    assert isinstance(engine.store, JsonFileProgressStore)
    engine.evolve()
    assert (tmp_path / "s.json").exists()


def test_from_settings_with_store():
    cfg = MoonStoneSettings(run_predicates_before_version=True)
    store = InMemoryProgressStore()
    engine = MoonStone.from_settings("1.0.0", settings=cfg, store=store)
    assert engine.run_predicates_before_version is True
    assert engine.store is store

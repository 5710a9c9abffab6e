"""Global configuration: loaded from environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings


class MoonStoneSettings(BaseSettings):
    prefix: str = "MoonStone"  # key namespace in the progress store
    run_predicates_before_version: bool = False
    state_path: Path = Path(".moonstone/state.json")
    log_level: str = "INFO"

    model_config = {"env_prefix": "MOONSTONE_"}


settings = MoonStoneSettings()

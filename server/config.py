"""Play service settings loaded from the environment."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from cardgames.catalog import DEFAULT_CARDS_PATH


class Settings(BaseSettings):
    """Application settings; every field can be set via ``CARDGAMES_<NAME>``."""

    model_config = SettingsConfigDict(env_prefix="CARDGAMES_", env_file=".env", extra="ignore")

    app_name: str = "Baseball Card Games"
    cards_path: Path = DEFAULT_CARDS_PATH
    scores_path: Path = Path("data/high_scores.json")
    rules_path: Optional[Path] = None
    static_dir: Path = Path(__file__).parent.parent / "ui" / "web" / "dist"
    cors_origins: list[str] = ["*"]
    log_level: str = "INFO"

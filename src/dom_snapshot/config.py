"""Configuration management for DOM Snapshot."""

from pathlib import Path
from typing import Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file at import time
load_dotenv()


class FetchConfig(BaseModel):
    """Resource fetching configuration."""

    timeout: float = 10.0
    max_retries: int = 3
    follow_redirects: bool = True
    user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) dom-snapshot/0.1"
    )


class EnvironmentConfig(BaseModel):
    """Viewport and user preferences the capture is evaluated against."""

    prefers_dark: bool = False
    viewport_width: int = 1280
    viewport_height: int = 720
    prefers_reduced_motion: bool = False
    hover: bool = True
    pointer: Literal["none", "coarse", "fine"] = "fine"
    media_type: Literal["screen", "print"] = "screen"


class ThemeConfig(BaseModel):
    """Baseline colours injected into the snapshot's head."""

    light_background: str = "#ffffff"
    light_foreground: str = "#000000"
    dark_background: str = "#121212"
    dark_foreground: str = "#e8e8e8"


class Config(BaseSettings):
    """Main configuration for DOM Snapshot."""

    model_config = SettingsConfigDict(
        env_prefix="DOM_SNAPSHOT_",
        env_nested_delimiter="__",
    )

    output_path: Path = Path("snapshot.html")

    # Sub-configurations
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    environment: EnvironmentConfig = Field(default_factory=EnvironmentConfig)
    theme: ThemeConfig = Field(default_factory=ThemeConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment wins over values passed in from the YAML file
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_config(config_path: Path | None = None) -> Config:
    """Load configuration from YAML file and environment variables."""
    config_data: dict = {}

    # Try to find config file
    if config_path is None:
        for name in ["dom_snapshot.yaml", "dom_snapshot.yml", ".dom_snapshot.yaml"]:
            if Path(name).exists():
                config_path = Path(name)
                break

    # Load from YAML if exists
    if config_path and config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if raw and "dom_snapshot" in raw:
                config_data = raw["dom_snapshot"]
            elif raw:
                config_data = raw

    # Environment variables override YAML
    return Config(**config_data)

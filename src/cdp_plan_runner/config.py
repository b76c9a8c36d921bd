"""Configuration models for the plan runner."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BrowserConfig(BaseModel):
    """Settings for the spawned Chromium process."""

    executable: Optional[Path] = None
    headless: bool = False
    proxy_server: Optional[str] = None
    user_data_dir: Optional[Path] = None
    start_port: int = Field(default=9222, description="First port probed for the debugging endpoint.")
    host: str = "127.0.0.1"
    extra_args: list[str] = Field(default_factory=list)


class LaunchConfig(BaseModel):
    """Polling policy used while waiting for the debugging endpoint."""

    poll_attempts: int = 30
    poll_interval: float = 0.5
    startup_delay: float = Field(
        default=0.0,
        description="Seconds to wait after spawning the browser before the first poll.",
    )


class TimingConfig(BaseModel):
    """Settle delays and bounds applied by the action handlers (seconds)."""

    navigation_settle: float = 2.0
    script_settle: float = 1.0
    visibility_settle: float = 0.5
    scroll_settle: float = 0.5
    strategy_settle: float = 0.5
    key_press_delay: float = 0.1
    search_results_settle: float = 3.0
    default_wait_ms: float = 2000
    command_timeout: Optional[float] = Field(
        default=30.0,
        description="Upper bound for a single protocol round trip; None waits forever.",
    )


class ResolverConfig(BaseModel):
    """Settings for the translator and element/content resolver."""

    provider: str = Field(default="openai")
    model: Optional[str] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    max_retries: int = 3
    retry_delay: float = 1.0
    max_html_chars: int = 50000
    parameters: dict[str, Any] = Field(default_factory=dict)


class StorageConfig(BaseModel):
    """Where extracted payloads are written."""

    enabled: bool = True
    directory: Path = Path(".data_storage")
    max_age_days: int = 30


class ServerConfig(BaseModel):
    """Settings for the HTTP front end."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3000)


class RunnerConfig(BaseSettings):
    """Top-level configuration for the plan runner."""

    model_config = SettingsConfigDict(
        env_prefix="CDP_PLAN_RUNNER_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    launch: LaunchConfig = Field(default_factory=LaunchConfig)
    timings: TimingConfig = Field(default_factory=TimingConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> RunnerConfig:
    """Load configuration from an optional YAML file, the environment and overrides."""

    data: dict[str, Any] = {}
    if path:
        loaded = yaml.safe_load(path.read_text()) or {}
        if not isinstance(loaded, Mapping):
            raise ValueError(f"Configuration file {path} must contain a mapping")
        data = dict(loaded)
    if overrides:
        _deep_update(data, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    config = RunnerConfig(**data, **settings_kwargs)
    if not data:
        return config

    merged = config.model_dump(mode="python")
    _deep_update(merged, data)
    return RunnerConfig.model_validate(merged)


def _deep_update(target: dict[str, Any], updates: Mapping[str, Any]) -> None:
    """Recursively merge ``updates`` into ``target`` in-place."""

    for key, value in updates.items():
        if (
            isinstance(value, Mapping)
            and isinstance(existing := target.get(key), Mapping)
        ):
            nested: dict[str, Any]
            if isinstance(existing, dict):
                nested = existing
            else:
                nested = dict(existing)
            _deep_update(nested, value)
            target[key] = nested
        else:
            target[key] = value

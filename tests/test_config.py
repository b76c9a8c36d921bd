from pathlib import Path

import pytest

from cdp_plan_runner.config import RunnerConfig, load_config


def test_defaults_match_protocol_timings() -> None:
    config = RunnerConfig()

    assert config.browser.start_port == 9222
    assert config.launch.poll_attempts == 30
    assert config.launch.poll_interval == 0.5
    assert config.timings.navigation_settle == 2.0
    assert config.timings.search_results_settle == 3.0
    assert config.timings.default_wait_ms == 2000
    assert config.timings.command_timeout == 30.0
    assert config.server.port == 3000


def test_load_config_reads_env_file(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "CDP_PLAN_RUNNER_RESOLVER__PROVIDER=mock",
                "CDP_PLAN_RUNNER_RESOLVER__MODEL=gpt-4o-mini",
                "CDP_PLAN_RUNNER_BROWSER__HEADLESS=true",
                "CDP_PLAN_RUNNER_TIMINGS__COMMAND_TIMEOUT=5",
            ]
        )
    )

    config = load_config(env_file=env_path)

    assert config.resolver.provider == "mock"
    assert config.resolver.model == "gpt-4o-mini"
    assert config.browser.headless is True
    assert config.timings.command_timeout == 5


def test_load_config_prioritises_overrides(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "CDP_PLAN_RUNNER_RESOLVER__PROVIDER=mock",
                "CDP_PLAN_RUNNER_RESOLVER__MODEL=env-model",
                "CDP_PLAN_RUNNER_STORAGE__MAX_AGE_DAYS=7",
            ]
        )
    )

    config_path = tmp_path / "runner.yaml"
    config_path.write_text(
        "\n".join(
            [
                "resolver:",
                "  model: file-model",
                "browser:",
                "  extra_args: ['--lang=en-US']",
            ]
        )
    )

    config = load_config(config_path, env_file=env_path, resolver={"api_key": "override-key"})

    assert config.resolver.model == "file-model"
    assert config.resolver.api_key == "override-key"
    assert config.resolver.provider == "mock"
    assert config.browser.extra_args == ["--lang=en-US"]
    assert config.storage.max_age_days == 7


def test_environment_variables_are_read(monkeypatch) -> None:
    monkeypatch.setenv("CDP_PLAN_RUNNER_SERVER__PORT", "8123")
    monkeypatch.setenv("CDP_PLAN_RUNNER_LAUNCH__POLL_ATTEMPTS", "5")

    config = load_config()

    assert config.server.port == 8123
    assert config.launch.poll_attempts == 5


def test_load_config_rejects_non_mapping_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "runner.yaml"
    config_path.write_text("- browser\n- resolver\n")

    with pytest.raises(ValueError, match="must contain a mapping"):
        load_config(config_path)

from __future__ import annotations

import json
import sys
import types
from pathlib import Path

import pytest
from fastapi import FastAPI
from typer.testing import CliRunner

from cdp_plan_runner.cli import app


@pytest.fixture
def cli_env(monkeypatch, tmp_path: Path, fake_browser):
    monkeypatch.setenv("CDP_PLAN_RUNNER_STORAGE__DIRECTORY", str(tmp_path / "results"))
    monkeypatch.setenv("CDP_PLAN_RUNNER_TIMINGS__NAVIGATION_SETTLE", "0")
    monkeypatch.setenv("CDP_PLAN_RUNNER_TIMINGS__SCRIPT_SETTLE", "0")
    monkeypatch.setattr("cdp_plan_runner.cli.build_connection", lambda config: fake_browser)
    return fake_browser


def _write_plan(path: Path, *steps: dict) -> Path:
    path.write_text(json.dumps({"task": "cli task", "steps": list(steps)}))
    return path


def test_version_command():
    result = CliRunner().invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.output.strip()


def test_run_plan_success(cli_env, tmp_path: Path):
    plan_path = _write_plan(
        tmp_path / "plan.json",
        {"action": "navigate", "description": "Open", "params": {"url": "https://example.com"}},
        {"action": "wait", "description": "Wait", "params": {"duration": 0}},
    )

    result = CliRunner().invoke(app, ["run-plan", str(plan_path), "--provider", "mock", "--headless"])

    assert result.exit_code == 0, result.output
    assert '"success": true' in result.output
    assert "Plan completed successfully." in result.output
    assert cli_env.closed
    assert ("Page.navigate", {"url": "https://example.com"}, "session-1") in cli_env.calls


def test_run_plan_reads_yaml(cli_env, tmp_path: Path):
    plan_path = tmp_path / "plan.yaml"
    plan_path.write_text(
        "\n".join(
            [
                "task: yaml task",
                "steps:",
                "  - action: navigate",
                "    description: Open",
                "    params: {url: 'https://example.com'}",
            ]
        )
    )

    result = CliRunner().invoke(app, ["run-plan", str(plan_path), "--provider", "mock"])

    assert result.exit_code == 0, result.output


def test_run_plan_failure_exits_with_code_1(cli_env, tmp_path: Path):
    cli_env.exists = False
    plan_path = _write_plan(
        tmp_path / "plan.json",
        {"action": "navigate", "description": "Open", "params": {"url": "https://example.com"}},
        {"action": "click", "description": "Click", "params": {"selector": "#missing"}},
    )

    result = CliRunner().invoke(app, ["run-plan", str(plan_path), "--provider", "mock"])

    assert result.exit_code == 1
    assert "Plan failed: Step 2 (click)" in result.output
    assert "Plan completed successfully." not in result.output


def test_run_plan_rejects_invalid_plan(cli_env, tmp_path: Path):
    plan_path = _write_plan(tmp_path / "plan.json", {"action": "teleport", "description": "x"})

    result = CliRunner().invoke(app, ["run-plan", str(plan_path), "--provider", "mock"])

    assert result.exit_code == 2
    assert "Invalid plan" in result.output
    assert cli_env.calls == []


def test_execute_translates_command_with_configured_mock(cli_env, tmp_path: Path):
    config_path = tmp_path / "runner.yaml"
    config_path.write_text(
        "\n".join(
            [
                "resolver:",
                "  provider: mock",
                "  parameters:",
                "    plans:",
                "      - task: scroll page",
                "        steps:",
                "          - action: navigate",
                "            description: Open",
                "            params: {url: 'https://example.com'}",
                "          - action: scroll",
                "            description: Scroll",
            ]
        )
    )

    result = CliRunner().invoke(app, ["execute", "scroll example.com", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert any(method == "Runtime.evaluate" for method in cli_env.methods())
    assert "window.scrollBy(0, 500);" in cli_env.scripts


def test_execute_reports_translation_failure(cli_env):
    result = CliRunner().invoke(app, ["execute", "anything", "--provider", "mock"])

    assert result.exit_code == 1
    assert "ran out of plans" in result.output


def test_serve_invokes_uvicorn(monkeypatch, cli_env):
    calls: list[dict[str, object]] = []

    def fake_run(app, host, port):  # type: ignore[no-untyped-def]
        calls.append({"app": app, "host": host, "port": port})

    monkeypatch.setitem(sys.modules, "uvicorn", types.SimpleNamespace(run=fake_run))

    result = CliRunner().invoke(app, ["serve", "--provider", "mock", "--port", "9100"])

    assert result.exit_code == 0, result.output
    assert len(calls) == 1
    assert isinstance(calls[0]["app"], FastAPI)
    assert calls[0]["host"] == "127.0.0.1"
    assert calls[0]["port"] == 9100


def test_execute_rejects_provider_without_translation(cli_env, tmp_path: Path):
    config_path = tmp_path / "runner.yaml"
    config_path.write_text(
        "\n".join(
            [
                "resolver:",
                "  provider: static",
                "  parameters:",
                "    selector: {selector: '#q'}",
            ]
        )
    )

    result = CliRunner().invoke(app, ["execute", "search cats", "--config", str(config_path)])

    assert result.exit_code == 1
    assert "cannot translate commands" in result.output
    assert cli_env.calls == []


def test_run_plan_rejects_non_object_params(cli_env, tmp_path: Path):
    plan_path = _write_plan(tmp_path / "plan.json", {"action": "click", "description": "Click", "params": ["#go"]})

    result = CliRunner().invoke(app, ["run-plan", str(plan_path), "--provider", "mock"])

    assert result.exit_code == 2
    assert "Invalid plan" in result.output


def test_invalid_configuration_exits_with_code_2(cli_env, tmp_path: Path):
    config_path = tmp_path / "runner.yaml"
    config_path.write_text("- not\n- a mapping\n")

    result = CliRunner().invoke(app, ["execute", "anything", "--config", str(config_path)])

    assert result.exit_code == 2
    assert "Invalid configuration" in result.output
    assert cli_env.calls == []

"""Command line interface for cdp-plan-runner."""

from __future__ import annotations

import json
import logging
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
import yaml

from .config import RunnerConfig, load_config
from .errors import AutomationError, ResolverFailure
from .factory import build_connection, build_executor, build_notifier, build_resolver, build_store
from .models import Plan, PlanExecution
from .resolver.base import PlanTranslator
from .resolver.json_parser import parse_plan

app = typer.Typer(help="Run browser automation plans over the DevTools protocol")

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to YAML configuration."),
]
EnvFileOption = Annotated[
    Optional[Path],
    typer.Option("--env-file", help="Path to an .env file with default configuration values."),
]
HeadlessOption = Annotated[
    Optional[bool],
    typer.Option("--headless/--headed", help="Run the browser in headless mode (or headed)."),
]
ProviderOption = Annotated[
    Optional[str],
    typer.Option("--provider", help="Resolver provider (openai, mock or static)."),
]
ModelOption = Annotated[
    Optional[str],
    typer.Option("--model", help="Model identifier for the resolver."),
]
ApiKeyOption = Annotated[
    Optional[str],
    typer.Option("--api-key", help="API key for the resolver provider."),
]


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
) -> None:
    """Configure logging before executing any command."""

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command()
def version() -> None:
    """Print the package version."""

    try:
        typer.echo(get_version("cdp-plan-runner"))
    except PackageNotFoundError:  # pragma: no cover - when running from source tree
        typer.echo("0.0.0")


def _load(
    config_path: Optional[Path],
    env_file: Optional[Path],
    headless: Optional[bool],
    provider: Optional[str],
    model: Optional[str],
    api_key: Optional[str],
) -> RunnerConfig:
    overrides: dict[str, Any] = {}
    if headless is not None:
        overrides["browser"] = {"headless": headless}
    if any([provider, model, api_key]):
        overrides.setdefault("resolver", {})
        if provider:
            overrides["resolver"]["provider"] = provider
        if model:
            overrides["resolver"]["model"] = model
        if api_key:
            overrides["resolver"]["api_key"] = api_key
    try:
        return load_config(config_path, env_file=env_file, **overrides)
    except (ValueError, yaml.YAMLError) as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(code=2) from exc


def _read_plan(path: Path) -> Plan:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise typer.BadParameter("Plan file must contain an object", param_hint="PLAN")
    return parse_plan(data)


def _report(execution: PlanExecution) -> None:
    typer.echo(execution.model_dump_json(indent=2))
    if not execution.success:
        typer.echo(f"Plan failed: {execution.error}", err=True)
        raise typer.Exit(code=1)
    typer.echo("Plan completed successfully.", err=True)


def _execute(config: RunnerConfig, plan: Optional[Plan], command: Optional[str]) -> PlanExecution:
    resolver = build_resolver(config.resolver)
    if plan is None:
        if not isinstance(resolver, PlanTranslator):
            raise ResolverFailure(
                f"Resolver provider {config.resolver.provider!r} cannot translate commands"
            )
        plan = resolver.translate(command or "")
    connection = build_connection(config)
    executor = build_executor(
        config,
        connection,
        resolver,
        store=build_store(config.storage),
        notifier=build_notifier(),
    )
    with connection:
        return executor.execute(plan)


@app.command("run-plan")
def run_plan(
    plan_path: Annotated[Path, typer.Argument(help="JSON or YAML plan file.", exists=True, dir_okay=False)],
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    api_key: ApiKeyOption = None,
) -> None:
    """Execute a plan stored in a file."""

    config = _load(config_path, env_file, headless, provider, model, api_key)
    try:
        plan = _read_plan(plan_path)
    except (ValueError, yaml.YAMLError, AutomationError) as exc:
        typer.echo(f"Invalid plan: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    try:
        execution = _execute(config, plan, None)
    except AutomationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    _report(execution)


@app.command()
def execute(
    command: Annotated[str, typer.Argument(help="Natural language command.")],
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    api_key: ApiKeyOption = None,
) -> None:
    """Translate a command into a plan and execute it."""

    config = _load(config_path, env_file, headless, provider, model, api_key)
    try:
        execution = _execute(config, None, command)
    except AutomationError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    _report(execution)


@app.command()
def serve(
    config_path: ConfigOption = None,
    env_file: EnvFileOption = None,
    headless: HeadlessOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    api_key: ApiKeyOption = None,
    host: Annotated[Optional[str], typer.Option("--host", help="Binding address.")] = None,
    port: Annotated[Optional[int], typer.Option("--port", help="HTTP port.")] = None,
) -> None:
    """Serve the HTTP API."""

    import uvicorn

    from .api.service import AutomationService, create_app

    config = _load(config_path, env_file, headless, provider, model, api_key)
    resolver = build_resolver(config.resolver)
    connection = build_connection(config)
    store = build_store(config.storage)
    executor = build_executor(config, connection, resolver, store=store, notifier=build_notifier())
    service = AutomationService(
        connection,
        resolver if isinstance(resolver, PlanTranslator) else None,
        executor,
        store,
        max_age_days=config.storage.max_age_days,
    )
    uvicorn.run(create_app(service), host=host or config.server.host, port=port or config.server.port)


if __name__ == "__main__":
    app()

"""Factories for constructing components from configuration."""

from __future__ import annotations

from typing import Optional

from .cdp.connection import BrowserConnection
from .config import ResolverConfig, RunnerConfig, StorageConfig
from .executor.runner import PlanExecutor
from .models import Plan, SelectorInfo
from .notifications.base import ConsoleNotifier, Notifier
from .resolver.base import ElementResolver, StaticSelectorResolver
from .resolver.json_parser import parse_plan
from .resolver.mock import ScriptedResolver
from .resolver.openai_client import OpenAIResolver
from .storage.base import JSONFileStore, ResultStore


def build_resolver(config: ResolverConfig) -> ElementResolver:
    provider = config.provider.lower()
    if provider in {"openai", "azure", "openai-compatible"}:
        return OpenAIResolver(config)
    if provider == "mock":
        params = config.parameters
        plans: list[Plan] = [parse_plan(dict(item)) for item in params.get("plans", [])]
        selectors = {
            description: SelectorInfo.model_validate(info)
            for description, info in params.get("selectors", {}).items()
        }
        queue = [SelectorInfo.model_validate(info) for info in params.get("selector_queue", [])]
        return ScriptedResolver(
            plans=plans,
            selectors=selectors,
            selector_queue=queue,
            extractions=params.get("extractions", []),
        )
    if provider == "static":
        return StaticSelectorResolver(
            SelectorInfo.model_validate(config.parameters["selector"]),
            extracted=config.parameters.get("extracted"),
        )
    raise ValueError(f"Unsupported resolver provider: {config.provider}")


def build_connection(config: RunnerConfig) -> BrowserConnection:
    return BrowserConnection(
        config.browser,
        config.launch,
        command_timeout=config.timings.command_timeout,
    )


def build_store(config: StorageConfig) -> Optional[ResultStore]:
    if not config.enabled:
        return None
    return JSONFileStore(config.directory)


def build_notifier() -> Notifier:
    return ConsoleNotifier()


def build_executor(
    config: RunnerConfig,
    connection: BrowserConnection,
    resolver: ElementResolver,
    *,
    store: Optional[ResultStore] = None,
    notifier: Optional[Notifier] = None,
) -> PlanExecutor:
    return PlanExecutor(
        connection,
        resolver,
        timings=config.timings,
        store=store,
        notifier=notifier,
    )

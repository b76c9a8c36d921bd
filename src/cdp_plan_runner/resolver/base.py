"""Interfaces for the natural-language collaborators of the executor."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..models import Plan, SelectorInfo


class ElementResolver(ABC):
    """Turn page markup plus a description into selectors or extracted data."""

    @abstractmethod
    def find_selector(self, html: str, description: str) -> SelectorInfo:
        """Return the selector best matching ``description`` in ``html``.

        Implementations raise :class:`~cdp_plan_runner.errors.ResolverFailure` when
        no usable selector can be produced.
        """

    @abstractmethod
    def extract(self, html: str, instructions: str) -> dict[str, Any]:
        """Return structured data extracted from ``html`` following ``instructions``."""


class PlanTranslator(ABC):
    """Convert a natural-language command into an executable plan."""

    @abstractmethod
    def translate(self, command: str) -> Plan:
        """Return the plan for ``command``."""


class StaticSelectorResolver(ElementResolver):
    """Resolver that always answers with the same selector.

    Useful for wiring the executor against pages whose structure is known.
    """

    def __init__(self, selector: SelectorInfo, extracted: dict[str, Any] | None = None) -> None:
        self._selector = selector
        self._extracted = extracted or {}

    def find_selector(self, html: str, description: str) -> SelectorInfo:
        return self._selector

    def extract(self, html: str, instructions: str) -> dict[str, Any]:
        return dict(self._extracted)

"""Scripted translator and resolver for tests and offline use."""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Iterable, Mapping, Optional

from ..errors import ResolverFailure
from ..models import Plan, SelectorInfo
from .base import ElementResolver, PlanTranslator


class ScriptedResolver(ElementResolver, PlanTranslator):
    """Return plans, selectors and extractions from predefined data.

    Selectors are looked up by exact description first; otherwise the next entry of
    the ``selector_queue`` is returned.
    """

    def __init__(
        self,
        *,
        plans: Iterable[Plan] = (),
        selectors: Optional[Mapping[str, SelectorInfo]] = None,
        selector_queue: Iterable[SelectorInfo] = (),
        extractions: Iterable[dict[str, Any]] = (),
    ) -> None:
        self._plans: Deque[Plan] = deque(plans)
        self._selectors = dict(selectors or {})
        self._selector_queue: Deque[SelectorInfo] = deque(selector_queue)
        self._extractions: Deque[dict[str, Any]] = deque(extractions)
        self.selector_requests: list[tuple[str, str]] = []
        self.extract_requests: list[tuple[str, str]] = []

    def translate(self, command: str) -> Plan:
        if not self._plans:
            raise ResolverFailure("ScriptedResolver ran out of plans")
        return self._plans.popleft()

    def find_selector(self, html: str, description: str) -> SelectorInfo:
        self.selector_requests.append((html, description))
        if description in self._selectors:
            return self._selectors[description]
        if not self._selector_queue:
            raise ResolverFailure(f"No scripted selector for {description!r}")
        return self._selector_queue.popleft()

    def extract(self, html: str, instructions: str) -> dict[str, Any]:
        self.extract_requests.append((html, instructions))
        if not self._extractions:
            raise ResolverFailure("ScriptedResolver ran out of extractions")
        return self._extractions.popleft()

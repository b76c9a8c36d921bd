"""Utilities for parsing model responses into plans and selectors."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from ..errors import PlanValidationError, ResolverFailure
from ..models import ActionType, Plan, SelectorInfo

_DESCRIBED_ACTIONS = {"click", "type", "search", "pressEnter"}


def extract_json_object(text: str) -> dict[str, Any]:
    """Extract the first JSON object found in *text* and return it as a dict."""

    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _strip_code_fence(cleaned)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end <= start:
        raise ValueError("No JSON object found in model response")
    snippet = cleaned[start : end + 1]
    return json.loads(snippet)


def parse_plan(data: dict[str, Any]) -> Plan:
    """Validate a raw plan, filling the defaults the executor relies on.

    Every step must name an action and a description; ``params`` defaults to an
    empty mapping and element-targeting steps inherit the step description as
    their element description.
    """

    if not isinstance(data.get("task"), str) or not isinstance(data.get("steps"), list):
        raise PlanValidationError("Invalid plan structure: missing task or steps array")
    valid_actions = {action.value for action in ActionType}
    for index, step in enumerate(data["steps"]):
        if not isinstance(step, dict):
            raise PlanValidationError(f"Step {index} is not an object")
        if not step.get("action"):
            raise PlanValidationError(f"Step {index} is missing the 'action' field")
        if step["action"] not in valid_actions:
            raise PlanValidationError(f"Step {index} has unsupported action {step['action']!r}")
        if not step.get("description"):
            raise PlanValidationError(f"Step {index} is missing the 'description' field")
        params = step.get("params") or {}
        if not isinstance(params, dict):
            raise PlanValidationError(f"Step {index} has params that are not an object")
        if step["action"] in _DESCRIBED_ACTIONS and not params.get("description"):
            params["description"] = step["description"]
        step["params"] = params
    try:
        return Plan.model_validate(data)
    except ValidationError as exc:
        raise PlanValidationError(f"Failed to parse automation plan: {exc}") from exc


def parse_plan_text(text: str) -> Plan:
    """Parse raw model output into a :class:`Plan`."""

    try:
        data = extract_json_object(text)
    except ValueError as exc:
        raise PlanValidationError(f"Failed to extract JSON from model response: {exc}") from exc
    return parse_plan(data)


def parse_selector_info(text: str) -> SelectorInfo:
    try:
        data = extract_json_object(text)
        info = SelectorInfo.model_validate(data)
    except (ValueError, ValidationError) as exc:
        raise ResolverFailure(f"Failed to extract selector from model response: {exc}") from exc
    if not info.selector.strip():
        raise ResolverFailure("Model returned an empty selector")
    return info


def _strip_code_fence(block: str) -> str:
    parts = block.split("```")
    if len(parts) >= 3:
        return parts[1]
    return block.strip("`")

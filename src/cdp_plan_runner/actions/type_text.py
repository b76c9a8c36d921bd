"""Type text into form fields."""

from __future__ import annotations

import logging
from typing import Sequence

from ..cdp import scripts
from ..errors import ElementNotFound, ElementNotInteractable
from ..models import Step
from .base import (
    ActionContext,
    box_center,
    bring_into_view,
    evaluate,
    focus_node,
    mouse_click,
    query_node,
    require_session,
)
from .find_selector import ensure_selector
from .strategies import Strategy, run_strategies

LOGGER = logging.getLogger(__name__)

_CLEAR_SETTLE = 0.2


def _fill(ctx: ActionContext, session_id: str, selector: str, text: str) -> bool:
    """Empty the focused field, insert ``text`` as keyboard input and assign the value.

    Both the input-level and the DOM-level channel see the text so that frameworks
    listening on either pick it up. The field is emptied first, so repeating the
    step never doubles the value.
    """

    if not evaluate(ctx, session_id, scripts.clear_value(selector)):
        return False
    ctx.sleep(_CLEAR_SETTLE)
    if text:
        ctx.connection.call("Input.insertText", {"text": text}, session_id)
    return evaluate(ctx, session_id, scripts.set_value(selector, text)) is not None


def insert_and_assign(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    if not bring_into_view(ctx, session_id, selector):
        return False
    node_id = query_node(ctx, session_id, selector)
    if node_id is None:
        return False
    focus_node(ctx, session_id, node_id)
    ctx.connection.call(
        "DOM.setAttributeValue",
        {"nodeId": node_id, "name": "value", "value": ""},
        session_id,
    )
    return _fill(ctx, session_id, selector, step.params.text or "")


def pointer_focus(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    """Click the centre of the field to focus it, then fill it."""

    node_id = query_node(ctx, session_id, selector)
    if node_id is None:
        return False
    center = box_center(ctx, session_id, node_id)
    if center is None:
        return False
    mouse_click(ctx, session_id, *center)
    return _fill(ctx, session_id, selector, step.params.text or "")


def descendant_input(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    """Fill the first input-like element inside a composite widget."""

    if not evaluate(ctx, session_id, scripts.focus_editable_descendant(selector)):
        return False
    return _fill(ctx, session_id, selector, step.params.text or "")


def script_assign(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    return evaluate(ctx, session_id, scripts.set_value(selector, step.params.text or "")) is not None


def forced_visibility_assign(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    if not evaluate(ctx, session_id, scripts.force_visible(selector)):
        return False
    ctx.sleep(ctx.timings.strategy_settle)
    return script_assign(ctx, session_id, selector, step)


TYPE_STRATEGIES: tuple[Strategy, ...] = (
    Strategy("insert_text", insert_and_assign),
    Strategy("pointer_focus", pointer_focus),
    Strategy("descendant_input", descendant_input),
    Strategy("script_value", script_assign),
    Strategy("force_visible", forced_visibility_assign),
)


def handle_type(
    step: Step,
    ctx: ActionContext,
    strategies: Sequence[Strategy] = TYPE_STRATEGIES,
) -> Step:
    session_id = require_session(step)
    text = step.params.text or ""
    selector = ensure_selector(step, ctx)
    LOGGER.info('Typing text: "%s" into %s', text, selector)
    used = run_strategies(strategies, ctx, session_id, selector, step)
    if used is None:
        if not evaluate(ctx, session_id, scripts.element_exists(selector)):
            raise ElementNotFound(f"Element not found with selector: {selector}")
        raise ElementNotInteractable(f"Could not type into {selector}")

    value = evaluate(ctx, session_id, scripts.read_value(selector))
    if value == text:
        LOGGER.info('Verification - Current input value: "%s"', value)
    else:
        LOGGER.warning('Typed "%s" but field %s reads "%s"', text, selector, value)
    step.selector = selector
    step.result = {**(step.result or {}), "strategy": used, "value": value}
    return step

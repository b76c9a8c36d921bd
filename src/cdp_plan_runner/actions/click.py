"""Click an element, falling back through progressively blunter mechanisms."""

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


def script_click(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    """Scroll into view, check the element is visible and uncovered, then ``click()``."""

    if not bring_into_view(ctx, session_id, selector):
        return False
    return bool(evaluate(ctx, session_id, scripts.click(selector)))


def pointer_click(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    """Focus the node and press/release the mouse at the centre of its box."""

    node_id = query_node(ctx, session_id, selector)
    if node_id is None:
        return False
    focus_node(ctx, session_id, node_id)
    center = box_center(ctx, session_id, node_id)
    if center is None:
        return False
    x, y = center
    mouse_click(ctx, session_id, x, y)
    LOGGER.info("Clicked element at coordinates: (%s, %s)", x, y)
    return True


def descendant_click(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    return bool(evaluate(ctx, session_id, scripts.click_descendant(selector)))


def forced_visibility_click(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    if not evaluate(ctx, session_id, scripts.force_visible(selector)):
        return False
    ctx.sleep(ctx.timings.strategy_settle)
    return bool(evaluate(ctx, session_id, scripts.click(selector)))


def anchor_navigation(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    href = evaluate(ctx, session_id, scripts.anchor_href(selector))
    if not href:
        return False
    LOGGER.info("Element is a link, navigating to: %s", href)
    ctx.connection.call("Page.navigate", {"url": href}, session_id)
    ctx.readiness.wait(ctx.connection, session_id)
    return True


def text_match_click(ctx: ActionContext, session_id: str, selector: str, step: Step) -> bool:
    text = step.params.text or step.params.description
    if not text:
        return False
    return bool(evaluate(ctx, session_id, scripts.click_by_text(text)))


CLICK_STRATEGIES: tuple[Strategy, ...] = (
    Strategy("script_click", script_click),
    Strategy("pointer_events", pointer_click),
    Strategy("descendant_click", descendant_click),
    Strategy("force_visible", forced_visibility_click),
    Strategy("anchor_navigation", anchor_navigation),
    Strategy("text_match", text_match_click),
)


def handle_click(
    step: Step,
    ctx: ActionContext,
    strategies: Sequence[Strategy] = CLICK_STRATEGIES,
) -> Step:
    session_id = require_session(step)
    selector = ensure_selector(step, ctx)
    LOGGER.info("Using selector: %s", selector)
    used = run_strategies(strategies, ctx, session_id, selector, step)
    if used is None:
        if not evaluate(ctx, session_id, scripts.element_exists(selector)):
            raise ElementNotFound(f"Element not found with selector: {selector}")
        raise ElementNotInteractable(f"Every click mechanism failed for {selector}")
    step.selector = selector
    step.result = {**(step.result or {}), "strategy": used}
    return step

"""Scroll the page in a direction."""

from __future__ import annotations

import logging

from ..cdp import scripts
from ..models import ScrollDirection, Step
from .base import ActionContext, evaluate, require_session

LOGGER = logging.getLogger(__name__)

DEFAULT_SCROLL_AMOUNT = 500


def handle_scroll(step: Step, ctx: ActionContext) -> Step:
    session_id = require_session(step)
    direction = step.params.direction or ScrollDirection.DOWN
    amount = step.params.amount if step.params.amount is not None else DEFAULT_SCROLL_AMOUNT
    LOGGER.info("Scrolling %s by %spx", direction.value, amount)
    evaluate(ctx, session_id, scripts.scroll(direction, abs(amount)))
    ctx.sleep(ctx.timings.scroll_settle)
    step.result = {"direction": direction.value, "amount": amount}
    return step

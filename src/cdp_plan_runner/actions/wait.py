"""Pause plan execution."""

from __future__ import annotations

import logging

from ..models import Step
from .base import ActionContext

LOGGER = logging.getLogger(__name__)


def handle_wait(step: Step, ctx: ActionContext) -> Step:
    duration = step.params.duration
    if duration is None and isinstance(step.params.data, (int, float)):
        duration = float(step.params.data)
    if duration is None:
        duration = ctx.timings.default_wait_ms
    LOGGER.info("Waiting for %sms...", duration)
    ctx.sleep(max(duration, 0) / 1000)
    step.result = {"waited_ms": duration}
    return step

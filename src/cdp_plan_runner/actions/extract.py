"""Extract structured data from the current page."""

from __future__ import annotations

import logging

from ..errors import ResolverFailure
from ..models import Step
from .base import ActionContext, page_html, require_session

LOGGER = logging.getLogger(__name__)

DEFAULT_INSTRUCTIONS = "Extract all visible text content"


def handle_extract(step: Step, ctx: ActionContext) -> Step:
    session_id = require_session(step)
    html = page_html(ctx, session_id)
    instructions = step.params.instructions or DEFAULT_INSTRUCTIONS
    LOGGER.info("Extracting data from page...")
    extracted = ctx.resolver.extract(html, instructions)
    if not isinstance(extracted, dict):
        raise ResolverFailure("Content resolver returned no structured payload")
    step.result = {"extracted": extracted, "instructions": instructions}
    LOGGER.info("Data extraction completed")
    return step

"""Open a new tab and load a URL."""

from __future__ import annotations

import logging

from ..errors import InvalidStep
from ..models import Step
from .base import ActionContext

LOGGER = logging.getLogger(__name__)


def handle_navigate(step: Step, ctx: ActionContext) -> Step:
    """Always create a fresh tab; the new session becomes the step's session."""

    url = step.params.url
    if not url:
        raise InvalidStep("Navigate action requires a URL")
    session = ctx.sessions.open_tab(ctx.connection)
    LOGGER.info("Navigating to URL: %s", url)
    ctx.connection.call("Page.navigate", {"url": url}, session.session_id)
    ctx.readiness.wait(ctx.connection, session.session_id)
    LOGGER.info("Navigation completed to: %s", url)
    step.session_id = session.session_id
    step.result = {"url": url, "target_id": session.target_id}
    return step

"""Bridge between handlers and the description-to-selector resolver."""

from __future__ import annotations

import logging

from ..errors import InvalidStep, ResolverFailure
from ..models import SelectorInfo, Step
from .base import ActionContext, page_html, require_session

LOGGER = logging.getLogger(__name__)


def resolve_selector_info(step: Step, ctx: ActionContext) -> SelectorInfo:
    """Return the selector for the step's element.

    An explicit ``params.selector`` wins with full confidence. Otherwise the current
    document is handed to the resolver together with ``params.description``; resolver
    failures are not retried.
    """

    if step.params.selector:
        LOGGER.info("Using provided selector: %s", step.params.selector)
        return SelectorInfo(
            selector=step.params.selector,
            confidence=1.0,
            explanation="Selector provided directly in the plan",
        )
    description = step.params.description
    if not description:
        raise InvalidStep("Either selector or element description is required for selector finding")
    session_id = require_session(step)
    LOGGER.info("Getting page HTML for element analysis...")
    html = page_html(ctx, session_id)
    info = ctx.resolver.find_selector(html, description)
    if info is None or not info.selector:
        raise ResolverFailure(f"Resolver returned no selector for {description!r}")
    LOGGER.info("Found selector for %r: %s (confidence %.2f)", description, info.selector, info.confidence)
    return info


def handle_find_selector(step: Step, ctx: ActionContext) -> Step:
    require_session(step)
    info = resolve_selector_info(step, ctx)
    step.selector = info.selector
    step.result = {"selector_info": info.model_dump()}
    return step


def ensure_selector(step: Step, ctx: ActionContext) -> str:
    """Selector attached to the step, resolving one when none is present."""

    if step.params.selector:
        return step.params.selector
    if step.selector:
        return step.selector
    handle_find_selector(step, ctx)
    if not step.selector:
        raise ResolverFailure(f"No selector resolved for {step.params.description!r}")
    return step.selector

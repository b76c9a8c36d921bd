"""Type a query into the page's search box and submit it."""

from __future__ import annotations

import logging

from ..models import ActionType, SelectorInfo, Step, StepParams
from .base import ActionContext
from .click import handle_click
from .find_selector import resolve_selector_info
from .press_enter import handle_press_enter
from .type_text import handle_type

LOGGER = logging.getLogger(__name__)

SEARCH_BOX_DESCRIPTION = "search box"


def _ensure_session(step: Step, ctx: ActionContext) -> str:
    """Reuse the step's session; open a tab only when there is none."""

    if step.session_id:
        return step.session_id
    session = ctx.sessions.open_tab(ctx.connection)
    if step.params.url:
        LOGGER.info("Navigating to %s before searching", step.params.url)
        ctx.connection.call("Page.navigate", {"url": step.params.url}, session.session_id)
        ctx.readiness.wait(ctx.connection, session.session_id)
    step.session_id = session.session_id
    return session.session_id


def _sub_step(step: Step, action: ActionType, session_id: str, **params) -> Step:
    return Step(
        action=action,
        description=step.description,
        params=StepParams(**params),
        session_id=session_id,
    )


def handle_search(step: Step, ctx: ActionContext) -> Step:
    """Find the search field, type ``params.text`` and submit.

    Submission clicks ``submit_selector`` (from the step or the resolver) when one is
    known and presses Enter otherwise.
    """

    session_id = _ensure_session(step, ctx)
    query = step.params.text or ""
    if step.params.description and step.params.description != SEARCH_BOX_DESCRIPTION:
        description = f"{SEARCH_BOX_DESCRIPTION}: {step.params.description}"
    else:
        description = SEARCH_BOX_DESCRIPTION

    if step.params.selector:
        info = SelectorInfo(selector=step.params.selector, explanation="Selector provided directly in the plan")
    else:
        lookup = _sub_step(step, ActionType.FIND_SELECTOR, session_id, description=description)
        info = resolve_selector_info(lookup, ctx)
    LOGGER.info("Searching for %r using %s", query, info.selector)

    handle_type(_sub_step(step, ActionType.TYPE, session_id, text=query, selector=info.selector), ctx)

    submit_selector = step.params.submit_selector or info.submit_selector
    if submit_selector:
        handle_click(_sub_step(step, ActionType.CLICK, session_id, selector=submit_selector), ctx)
        submitted_via = "click"
    else:
        handle_press_enter(_sub_step(step, ActionType.PRESS_ENTER, session_id), ctx)
        submitted_via = "enter"

    LOGGER.info("Waiting for search results...")
    ctx.sleep(ctx.timings.search_results_settle)
    step.selector = info.selector
    step.result = {
        "selector_info": info.model_dump(),
        "query": query,
        "submitted_via": submitted_via,
    }
    return step

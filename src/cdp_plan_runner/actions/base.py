"""Execution context and protocol helpers shared by the action handlers."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ..cdp import scripts
from ..cdp.connection import BrowserConnection
from ..cdp.readiness import PageReadiness
from ..cdp.sessions import SessionRegistry
from ..config import TimingConfig
from ..errors import CommandError, MissingSession
from ..models import Step
from ..resolver.base import ElementResolver

LOGGER = logging.getLogger(__name__)

_MOUSE_PRESS_GAP = 0.05


@dataclass
class ActionContext:
    """Collaborators handed to every action handler."""

    connection: BrowserConnection
    resolver: ElementResolver
    sessions: SessionRegistry = field(default_factory=SessionRegistry)
    timings: TimingConfig = field(default_factory=TimingConfig)
    sleep: Callable[[float], None] = time.sleep
    readiness: Optional[PageReadiness] = None

    def __post_init__(self) -> None:
        if self.readiness is None:
            self.readiness = PageReadiness(self.timings, self.sleep)


def require_session(step: Step) -> str:
    if not step.session_id:
        raise MissingSession(f"Session ID required for {step.action.value} action")
    return step.session_id


def evaluate(
    ctx: ActionContext,
    session_id: str,
    expression: str,
    *,
    await_promise: bool = False,
) -> Any:
    """Evaluate ``expression`` in the page and return its JSON value."""

    reply = ctx.connection.call(
        "Runtime.evaluate",
        {
            "expression": expression,
            "returnByValue": True,
            "awaitPromise": await_promise,
        },
        session_id,
    )
    details = reply.get("exceptionDetails")
    if details:
        message = details.get("exception", {}).get("description") or details.get("text")
        raise CommandError("Runtime.evaluate", {"message": message or "script threw"})
    return (reply.get("result") or {}).get("value")


def page_html(ctx: ActionContext, session_id: str) -> str:
    """Return the outer HTML of the whole document."""

    document = ctx.connection.call("DOM.getDocument", {"depth": -1}, session_id)
    node_id = document["root"]["nodeId"]
    outer = ctx.connection.call("DOM.getOuterHTML", {"nodeId": node_id}, session_id)
    return outer.get("outerHTML", "")


def query_node(ctx: ActionContext, session_id: str, selector: str) -> Optional[int]:
    document = ctx.connection.call("DOM.getDocument", {"depth": 1}, session_id)
    found = ctx.connection.call(
        "DOM.querySelector",
        {"nodeId": document["root"]["nodeId"], "selector": selector},
        session_id,
    )
    return found.get("nodeId") or None


def box_center(ctx: ActionContext, session_id: str, node_id: int) -> Optional[tuple[float, float]]:
    """Centre of the node's content quad, or ``None`` when it has no area."""

    box = ctx.connection.call("DOM.getBoxModel", {"nodeId": node_id}, session_id)
    model = box.get("model")
    if not model:
        return None
    content = model["content"]
    if model.get("width", 1) == 0 or model.get("height", 1) == 0:
        return None
    x = (content[0] + content[2] + content[4] + content[6]) / 4
    y = (content[1] + content[3] + content[5] + content[7]) / 4
    return x, y


def focus_node(ctx: ActionContext, session_id: str, node_id: int) -> None:
    try:
        ctx.connection.call("DOM.focus", {"nodeId": node_id}, session_id)
    except CommandError as exc:
        LOGGER.debug("DOM.focus rejected node %s: %s", node_id, exc)


def mouse_click(ctx: ActionContext, session_id: str, x: float, y: float) -> None:
    """Press and release the left button at viewport coordinates."""

    for event_type in ("mousePressed", "mouseReleased"):
        ctx.connection.call(
            "Input.dispatchMouseEvent",
            {"type": event_type, "x": x, "y": y, "button": "left", "clickCount": 1},
            session_id,
        )
        if event_type == "mousePressed":
            ctx.sleep(_MOUSE_PRESS_GAP)


def bring_into_view(ctx: ActionContext, session_id: str, selector: str) -> bool:
    """Scroll to the element, let it settle and confirm it has a box and is uncovered."""

    if not evaluate(ctx, session_id, scripts.scroll_into_view(selector)):
        return False
    ctx.sleep(ctx.timings.visibility_settle)
    probe = evaluate(ctx, session_id, scripts.visibility_probe(selector)) or {}
    LOGGER.info("Element visibility check: %s", probe)
    return bool(probe.get("visible"))

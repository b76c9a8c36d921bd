"""Submit the focused field with the Enter key."""

from __future__ import annotations

import logging

from ..cdp import scripts
from ..errors import CommandError, CommandTimeout, ElementNotInteractable
from ..models import Step
from .base import ActionContext, evaluate, require_session

LOGGER = logging.getLogger(__name__)

_ENTER_KEY = {
    "key": "Enter",
    "code": "Enter",
    "windowsVirtualKeyCode": 13,
    "nativeVirtualKeyCode": 13,
    "isKeypad": False,
    "modifiers": 0,
}


def handle_press_enter(step: Step, ctx: ActionContext) -> Step:
    """Press Enter physically, then fire a scripted keypress and form submission.

    If the protocol rejects the key events a literal newline is inserted instead.
    """

    session_id = require_session(step)
    LOGGER.info("Pressing Enter key...")
    try:
        ctx.connection.call(
            "Input.dispatchKeyEvent",
            {"type": "keyDown", "text": "\r", "unmodifiedText": "\r", **_ENTER_KEY},
            session_id,
        )
        ctx.sleep(ctx.timings.key_press_delay)
        ctx.connection.call("Input.dispatchKeyEvent", {"type": "keyUp", **_ENTER_KEY}, session_id)
        outcome = evaluate(ctx, session_id, scripts.KEYPRESS_AND_SUBMIT)
    except (CommandError, CommandTimeout) as exc:
        LOGGER.error("Error pressing Enter key: %s", exc)
        LOGGER.info("Trying fallback method for Enter key press")
        try:
            ctx.connection.call("Input.insertText", {"text": "\n"}, session_id)
        except (CommandError, CommandTimeout) as fallback_exc:
            raise ElementNotInteractable(f"Could not press Enter: {exc}") from fallback_exc
        step.result = {"strategy": "insert_newline"}
        return step
    LOGGER.info("Enter key pressed successfully (%s)", outcome)
    step.result = {"strategy": "key_events", "page_outcome": outcome}
    return step

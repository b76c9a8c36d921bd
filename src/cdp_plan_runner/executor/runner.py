"""Sequential plan executor."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from ..actions.base import ActionContext
from ..actions.click import handle_click
from ..actions.extract import handle_extract
from ..actions.find_selector import handle_find_selector
from ..actions.navigate import handle_navigate
from ..actions.press_enter import handle_press_enter
from ..actions.scroll import handle_scroll
from ..actions.search import handle_search
from ..actions.type_text import handle_type
from ..actions.wait import handle_wait
from ..cdp.connection import BrowserConnection
from ..cdp.sessions import SessionRegistry
from ..config import TimingConfig
from ..errors import AutomationError, UnknownAction
from ..models import (
    ActionType,
    NotificationEvent,
    NotificationLevel,
    Plan,
    PlanExecution,
    Step,
    StepStatus,
)
from ..notifications.base import Notifier
from ..resolver.base import ElementResolver
from ..storage.base import ResultStore

LOGGER = logging.getLogger(__name__)


def dispatch_step(step: Step, ctx: ActionContext) -> Step:
    """Run the handler for ``step.action``."""

    action = step.action
    if action == ActionType.NAVIGATE:
        return handle_navigate(step, ctx)
    elif action == ActionType.SEARCH:
        return handle_search(step, ctx)
    elif action == ActionType.CLICK:
        return handle_click(step, ctx)
    elif action == ActionType.TYPE:
        return handle_type(step, ctx)
    elif action == ActionType.EXTRACT:
        return handle_extract(step, ctx)
    elif action == ActionType.SCROLL:
        return handle_scroll(step, ctx)
    elif action == ActionType.WAIT:
        return handle_wait(step, ctx)
    elif action == ActionType.PRESS_ENTER:
        return handle_press_enter(step, ctx)
    elif action == ActionType.FIND_SELECTOR:
        return handle_find_selector(step, ctx)
    raise UnknownAction(f"Unknown action: {action}")


class PlanExecutor:
    """Run a plan's steps in order, stopping at the first failure.

    The tab opened by a navigate or search step becomes the active session and is
    handed to every following step that does not name one of its own.
    """

    def __init__(
        self,
        connection: BrowserConnection,
        resolver: ElementResolver,
        *,
        sessions: Optional[SessionRegistry] = None,
        timings: Optional[TimingConfig] = None,
        store: Optional[ResultStore] = None,
        notifier: Optional[Notifier] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._context = ActionContext(
            connection=connection,
            resolver=resolver,
            sessions=sessions or SessionRegistry(),
            timings=timings or TimingConfig(),
            sleep=sleep,
        )
        self._store = store
        self._notifier = notifier

    def execute(self, plan: Plan) -> PlanExecution:
        """Execute ``plan`` and return the annotated steps.

        Step errors never propagate; they are recorded on the failing step and the
        remaining steps are marked skipped.
        """

        steps = [step.model_copy(deep=True) for step in plan.steps]
        execution = PlanExecution(task=plan.task, steps=steps, success=False)
        LOGGER.info("Executing plan for task: %s", plan.task)
        self._notify("plan_started", f"Starting plan: {plan.task}", data={"steps": len(steps)})

        active_session: Optional[str] = None
        for index, step in enumerate(steps):
            if step.session_id is None:
                step.session_id = active_session
            step.status = StepStatus.RUNNING
            step.started_at = datetime.now(timezone.utc)
            LOGGER.info("Executing step %s: %s - %s", index + 1, step.action.value, step.description)
            self._notify("step_started", step.description, data={"index": index, "action": step.action.value})
            try:
                dispatch_step(step, self._context)
                if step.action == ActionType.EXTRACT:
                    self._persist(step)
            except AutomationError as exc:
                LOGGER.error("Step %s (%s) failed: %s", index + 1, step.action.value, exc)
                return self._fail(execution, index, exc)
            except Exception as exc:
                LOGGER.exception("Unhandled error in step %s", index + 1)
                return self._fail(execution, index, exc)
            step.status = StepStatus.SUCCEEDED
            step.finished_at = datetime.now(timezone.utc)
            if step.session_id:
                active_session = step.session_id
            self._notify(
                "step_succeeded",
                step.description,
                level=NotificationLevel.SUCCESS,
                data={"index": index, "action": step.action.value},
            )

        execution.success = True
        execution.finished_at = datetime.now(timezone.utc)
        LOGGER.info("Plan completed: %s", plan.task)
        self._notify("plan_finished", f"Completed: {plan.task}", level=NotificationLevel.SUCCESS)
        return execution

    def _persist(self, step: Step) -> None:
        if self._store is None or not step.result:
            return
        name = self._store.save(step.result.get("extracted"))
        step.result["stored_at"] = name

    def _fail(self, execution: PlanExecution, index: int, exc: Exception) -> PlanExecution:
        step = execution.steps[index]
        step.status = StepStatus.FAILED
        step.error = str(exc)
        step.error_type = type(exc).__name__
        step.finished_at = datetime.now(timezone.utc)
        for remaining in execution.steps[index + 1 :]:
            remaining.status = StepStatus.SKIPPED
        execution.success = False
        execution.error = f"Step {index + 1} ({step.action.value}) failed: {exc}"
        execution.failed_step = index
        execution.finished_at = step.finished_at
        self._notify(
            "step_failed",
            step.error,
            level=NotificationLevel.ERROR,
            data={"index": index, "action": step.action.value, "error_type": step.error_type},
        )
        self._notify("plan_failed", execution.error, level=NotificationLevel.ERROR)
        return execution

    def _notify(
        self,
        event_type: str,
        message: str,
        *,
        level: NotificationLevel = NotificationLevel.INFO,
        data: Optional[dict] = None,
    ) -> None:
        if self._notifier is None:
            return
        self._notifier.notify(
            NotificationEvent(type=event_type, message=message, level=level, data=data or {})
        )

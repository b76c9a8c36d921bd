from __future__ import annotations

import pytest

from cdp_plan_runner.errors import UnknownAction
from cdp_plan_runner.executor.runner import PlanExecutor, dispatch_step
from cdp_plan_runner.models import (
    ActionType,
    NotificationEvent,
    Plan,
    SelectorInfo,
    Step,
    StepStatus,
)
from cdp_plan_runner.notifications.base import Notifier
from cdp_plan_runner.resolver.json_parser import parse_plan
from cdp_plan_runner.resolver.mock import ScriptedResolver
from cdp_plan_runner.storage.base import InMemoryResultStore


def no_sleep(seconds: float) -> None:
    return None


class CollectingNotifier(Notifier):
    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    def notify(self, event: NotificationEvent) -> None:
        self.events.append(event)


def _plan(*steps: dict) -> Plan:
    return parse_plan({"task": "test task", "steps": list(steps)})


def test_plan_runs_every_step_and_threads_session(fake_browser) -> None:
    notifier = CollectingNotifier()
    executor = PlanExecutor(fake_browser, ScriptedResolver(), notifier=notifier, sleep=no_sleep)
    plan = _plan(
        {"action": "navigate", "description": "Open example", "params": {"url": "https://example.com"}},
        {"action": "type", "description": "Fill name", "params": {"selector": "#name", "text": "Ada"}},
        {"action": "click", "description": "Submit", "params": {"selector": "#go"}},
        {"action": "wait", "description": "Pause", "params": {"duration": 10}},
    )

    execution = executor.execute(plan)

    assert execution.success
    assert execution.failed_step is None
    assert [step.status for step in execution.steps] == [StepStatus.SUCCEEDED] * 4
    assert {step.session_id for step in execution.steps} == {"session-1"}
    assert all(step.started_at and step.finished_at for step in execution.steps)
    assert [event.type for event in notifier.events][:2] == ["plan_started", "step_started"]
    assert notifier.events[-1].type == "plan_finished"
    # the caller's plan is left untouched
    assert all(step.status == StepStatus.PENDING for step in plan.steps)


def test_failure_stops_plan_and_skips_remaining_steps(fake_browser) -> None:
    fake_browser.exists = False
    notifier = CollectingNotifier()
    executor = PlanExecutor(fake_browser, ScriptedResolver(), notifier=notifier, sleep=no_sleep)
    plan = _plan(
        {"action": "navigate", "description": "Open", "params": {"url": "https://example.com"}},
        {"action": "click", "description": "Click ghost", "params": {"selector": "#ghost"}},
        {"action": "scroll", "description": "Scroll"},
        {"action": "wait", "description": "Wait"},
    )

    execution = executor.execute(plan)

    assert not execution.success
    assert execution.failed_step == 1
    assert [step.status for step in execution.steps] == [
        StepStatus.SUCCEEDED,
        StepStatus.FAILED,
        StepStatus.SKIPPED,
        StepStatus.SKIPPED,
    ]
    failed = execution.steps[1]
    assert failed.error_type == "ElementNotFound"
    assert "#ghost" in failed.error
    assert "Step 2 (click)" in execution.error
    assert len(execution.succeeded_steps) == 1
    assert [event.type for event in notifier.events][-2:] == ["step_failed", "plan_failed"]


def test_first_step_without_session_fails_cleanly(fake_browser) -> None:
    executor = PlanExecutor(fake_browser, ScriptedResolver(), sleep=no_sleep)

    execution = executor.execute(_plan({"action": "scroll", "description": "Scroll"}))

    assert not execution.success
    assert execution.steps[0].error_type == "MissingSession"


def test_navigate_then_search_end_to_end(fake_browser) -> None:
    resolver = ScriptedResolver(
        selectors={"search box": SelectorInfo(selector="textarea[name=q]", confidence=0.95)},
    )
    executor = PlanExecutor(fake_browser, resolver, sleep=no_sleep)
    plan = _plan(
        {"action": "navigate", "description": "Open search", "params": {"url": "https://www.google.com"}},
        {"action": "search", "description": "search box", "params": {"text": "chrome devtools protocol"}},
    )

    execution = executor.execute(plan)

    assert execution.success
    search = execution.steps[1]
    assert search.session_id == "session-1"
    assert search.selector == "textarea[name=q]"
    assert search.result["submitted_via"] == "enter"
    assert fake_browser.value == "chrome devtools protocol"
    assert fake_browser.methods().count("Target.createTarget") == 1


def test_second_navigate_becomes_active_session(fake_browser) -> None:
    executor = PlanExecutor(fake_browser, ScriptedResolver(), sleep=no_sleep)
    plan = _plan(
        {"action": "navigate", "description": "First", "params": {"url": "https://a.test"}},
        {"action": "navigate", "description": "Second", "params": {"url": "https://b.test"}},
        {"action": "scroll", "description": "Scroll"},
    )

    execution = executor.execute(plan)

    assert execution.steps[2].session_id == "session-2"


def test_extracted_data_is_stored(fake_browser) -> None:
    payload = {"data": {"headline": "Hello"}, "metadata": {"source": "test"}}
    store = InMemoryResultStore()
    executor = PlanExecutor(
        fake_browser,
        ScriptedResolver(extractions=[payload]),
        store=store,
        sleep=no_sleep,
    )
    plan = _plan(
        {"action": "navigate", "description": "Open", "params": {"url": "https://example.com"}},
        {"action": "extract", "description": "Grab headline", "params": {"instructions": "headline"}},
    )

    execution = executor.execute(plan)

    stored_at = execution.steps[1].result["stored_at"]
    assert store.list() == [stored_at]
    assert store.get(stored_at)["data"] == payload


def test_resolver_failure_is_recorded_on_step(fake_browser) -> None:
    executor = PlanExecutor(fake_browser, ScriptedResolver(), sleep=no_sleep)
    plan = _plan(
        {"action": "navigate", "description": "Open", "params": {"url": "https://example.com"}},
        {"action": "click", "description": "Mystery button"},
    )

    execution = executor.execute(plan)

    assert execution.steps[1].status == StepStatus.FAILED
    assert execution.steps[1].error_type == "ResolverFailure"


def test_dispatch_rejects_unknown_action(make_context) -> None:
    step = Step.model_construct(action="teleport", description="nope")

    with pytest.raises(UnknownAction, match="teleport"):
        dispatch_step(step, make_context())


def test_unexpected_errors_are_contained(fake_browser) -> None:
    def explode(params, session_id):
        raise KeyError("root")

    fake_browser.overrides["DOM.getDocument"] = explode
    executor = PlanExecutor(fake_browser, ScriptedResolver(), sleep=no_sleep)
    plan = _plan(
        {"action": "navigate", "description": "Open", "params": {"url": "https://example.com"}},
        {"action": "extract", "description": "Grab"},
    )

    execution = executor.execute(plan)

    assert not execution.success
    assert execution.steps[1].error_type == "KeyError"
    assert ActionType.EXTRACT == execution.steps[1].action

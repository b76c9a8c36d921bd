"""Shared models used across the plan runner."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ActionType(str, enum.Enum):
    """Closed set of step kinds a plan may contain."""

    NAVIGATE = "navigate"
    SEARCH = "search"
    CLICK = "click"
    TYPE = "type"
    EXTRACT = "extract"
    SCROLL = "scroll"
    WAIT = "wait"
    PRESS_ENTER = "pressEnter"
    FIND_SELECTOR = "findSelector"


class ScrollDirection(str, enum.Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    TOP = "top"
    BOTTOM = "bottom"


class StepStatus(str, enum.Enum):
    """Execution state of a single step."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class StepParams(BaseModel):
    """Parameter bag attached to a step by the translator."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    url: Optional[str] = None
    text: Optional[str] = None
    description: Optional[str] = None
    selector: Optional[str] = None
    submit_selector: Optional[str] = Field(default=None, alias="submitSelector")
    duration: Optional[float] = Field(default=None, description="Wait duration in milliseconds.")
    direction: Optional[ScrollDirection] = None
    amount: Optional[int] = Field(default=None, description="Scroll distance in pixels.")
    instructions: Optional[str] = None
    data: Optional[Any] = None


class Step(BaseModel):
    """One unit of a plan, annotated in place once executed."""

    model_config = ConfigDict(populate_by_name=True)

    action: ActionType
    description: str
    params: StepParams = Field(default_factory=StepParams)
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    selector: Optional[str] = None
    result: Optional[dict[str, Any]] = None
    status: StepStatus = StepStatus.PENDING
    error: Optional[str] = None
    error_type: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class Plan(BaseModel):
    """Ordered steps produced by the translator for a single command."""

    task: str
    steps: list[Step] = Field(default_factory=list)


class SelectorInfo(BaseModel):
    """Resolver answer describing how to address an element."""

    model_config = ConfigDict(populate_by_name=True)

    selector: str
    confidence: float = Field(default=1.0, ge=0.0, le=1.0)
    explanation: Optional[str] = None
    submit_selector: Optional[str] = Field(default=None, alias="submitSelector")


class PlanExecution(BaseModel):
    """Structured outcome of running a plan, complete or partial."""

    task: str
    steps: list[Step]
    success: bool
    error: Optional[str] = None
    failed_step: Optional[int] = None
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    @property
    def succeeded_steps(self) -> list[Step]:
        return [step for step in self.steps if step.status == StepStatus.SUCCEEDED]


class NotificationLevel(str, enum.Enum):
    """Severity of notification events."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class NotificationEvent(BaseModel):
    """Event emitted to notify users."""

    type: str
    message: str
    level: NotificationLevel = NotificationLevel.INFO
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

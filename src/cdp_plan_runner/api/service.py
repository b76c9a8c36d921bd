"""HTTP service that translates commands into plans and runs them."""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..cdp.connection import BrowserConnection
from ..errors import (
    AutomationError,
    BrowserNotFound,
    LaunchTimeout,
    PlanValidationError,
    ResolverFailure,
)
from ..executor.runner import PlanExecutor
from ..models import Plan, PlanExecution
from ..resolver.base import PlanTranslator
from ..resolver.json_parser import parse_plan
from ..storage.base import ResultStore

LOGGER = logging.getLogger(__name__)


# Pydantic request/response models --------------------------------------------


class CommandRequest(BaseModel):
    command: str


class PlanRequest(BaseModel):
    task: str
    steps: List[Dict[str, Any]]


class ExecutionResponse(BaseModel):
    success: bool
    message: str
    data: Optional[PlanExecution] = None
    error: Optional[str] = None


# Service state ----------------------------------------------------------------


class AutomationService:
    """Own the browser connection and serialise plan execution.

    The browser is launched on the first request; a single plan runs at a time.
    """

    def __init__(
        self,
        connection: BrowserConnection,
        translator: Optional[PlanTranslator],
        executor: PlanExecutor,
        store: Optional[ResultStore] = None,
        *,
        max_age_days: int = 30,
    ) -> None:
        self._connection = connection
        self._translator = translator
        self._executor = executor
        self._store = store
        self._max_age_days = max_age_days
        self._connect_lock = threading.Lock()
        self._plan_lock = threading.Lock()

    @property
    def store(self) -> Optional[ResultStore]:
        return self._store

    def ensure_connected(self) -> None:
        with self._connect_lock:
            if not self._connection.is_open:
                self._connection.open()

    def execute_command(self, command: str) -> PlanExecution:
        if self._translator is None:
            raise ResolverFailure("No plan translator is configured")
        plan = self._translator.translate(command)
        return self.execute_plan(plan)

    def execute_plan(self, plan: Plan) -> PlanExecution:
        self.ensure_connected()
        with self._plan_lock:
            return self._executor.execute(plan)

    def cleanup(self) -> List[str]:
        if self._store is None:
            return []
        return self._store.cleanup(self._max_age_days)

    def shutdown(self) -> None:
        if self._connection.is_open:
            self._connection.close()


# Helpers ------------------------------------------------------------------------


def _failure(status_code: int, message: str, exc: Exception) -> JSONResponse:
    body = ExecutionResponse(success=False, message=message, error=str(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def _respond(execution: PlanExecution) -> ExecutionResponse:
    if execution.success:
        return ExecutionResponse(success=True, message="Command executed successfully", data=execution)
    return ExecutionResponse(
        success=False,
        message="Plan execution failed",
        data=execution,
        error=execution.error,
    )


def _run(operation) -> Any:
    try:
        return _respond(operation())
    except PlanValidationError as exc:
        return _failure(422, "Invalid automation plan", exc)
    except ResolverFailure as exc:
        LOGGER.error("Error processing command: %s", exc)
        return _failure(502, "Failed to process command", exc)
    except (LaunchTimeout, BrowserNotFound) as exc:
        LOGGER.error("Browser unavailable: %s", exc)
        return _failure(503, "Browser unavailable", exc)
    except AutomationError as exc:
        LOGGER.exception("Error executing command")
        return _failure(500, "Failed to execute command", exc)


# API routes -----------------------------------------------------------------------


def create_app(service: AutomationService) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        removed = service.cleanup()
        if removed:
            LOGGER.info("Removed %d expired result files", len(removed))
        try:
            yield
        finally:
            service.shutdown()

    app = FastAPI(title="CDP Plan Runner", lifespan=lifespan)

    @app.get("/health")
    def get_health() -> Dict[str, Any]:
        return {"status": "ok"}

    @app.post("/api/execute", response_model=ExecutionResponse)
    def execute_command(payload: CommandRequest) -> Any:
        if not payload.command.strip():
            raise HTTPException(status_code=400, detail="Command is required")
        LOGGER.info("Received command: %s", payload.command)
        return _run(lambda: service.execute_command(payload.command))

    @app.post("/api/plans", response_model=ExecutionResponse)
    def execute_plan(payload: PlanRequest) -> Any:
        return _run(lambda: service.execute_plan(parse_plan(payload.model_dump())))

    @app.get("/results")
    def list_results() -> List[str]:
        if service.store is None:
            return []
        return service.store.list()

    @app.get("/results/{name}")
    def get_result(name: str) -> Dict[str, Any]:
        if service.store is None:
            raise HTTPException(status_code=404, detail="Result storage is disabled")
        try:
            return service.store.get(name)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid result name") from None
        except KeyError:
            raise HTTPException(status_code=404, detail="Result not found") from None

    return app

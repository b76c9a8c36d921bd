from __future__ import annotations

import json
import queue
import re
from typing import Any, Callable, Optional

import pytest
import websocket

from cdp_plan_runner.actions.base import ActionContext
from cdp_plan_runner.cdp.sessions import SessionRegistry
from cdp_plan_runner.config import TimingConfig
from cdp_plan_runner.errors import CommandError
from cdp_plan_runner.models import SelectorInfo
from cdp_plan_runner.resolver.mock import ScriptedResolver

_CLOSE = object()
_TEXT_RE = re.compile(r"const text = (\".*?\");")


class FakeChannel:
    """In-memory duplex channel standing in for the websocket."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.closed = False
        self._inbox: "queue.Queue[object]" = queue.Queue()

    def send(self, payload: str) -> None:
        if self.closed:
            raise websocket.WebSocketConnectionClosedException("socket is already closed.")
        self.sent.append(json.loads(payload))

    def recv(self) -> str:
        item = self._inbox.get()
        if item is _CLOSE:
            raise websocket.WebSocketConnectionClosedException("Connection to remote host was lost.")
        return item  # type: ignore[return-value]

    def push(self, message: Any) -> None:
        self._inbox.put(message if isinstance(message, str) else json.dumps(message))

    def drop(self) -> None:
        self._inbox.put(_CLOSE)

    def close(self) -> None:
        self.closed = True
        self._inbox.put(_CLOSE)


class FakeBrowser:
    """Scripted stand-in for :class:`BrowserConnection` with one simulated element.

    In-page scripts are recognised by their shape and answered from the attributes
    below, so tests describe the page rather than individual replies.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any], Optional[str]]] = []
        self.scripts: list[str] = []
        self.failing: set[str] = set()
        self.overrides: dict[str, Callable[[dict[str, Any], Optional[str]], dict[str, Any]]] = {}
        self.exists = True
        self.visible = True
        self.has_descendant = False
        self.href: Optional[str] = None
        self.text_match = False
        self.box_area = True
        self.value = ""
        self.html = "<html><body><form><input name='q'></form></body></html>"
        self.is_open = False
        self.closed = False
        self._targets = 0

    # lifecycle used by the service and CLI
    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        self.closed = True

    def __enter__(self) -> "FakeBrowser":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def methods(self) -> list[str]:
        return [method for method, _, _ in self.calls]

    def call(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        session_id: Optional[str] = None,
        *,
        timeout: Any = None,
    ) -> dict[str, Any]:
        params = params or {}
        self.calls.append((method, params, session_id))
        if method in self.failing:
            raise CommandError(method, {"code": -32000, "message": f"{method} rejected"})
        if method in self.overrides:
            return self.overrides[method](params, session_id)
        if method == "Target.createTarget":
            self._targets += 1
            return {"targetId": f"target-{self._targets}"}
        if method == "Target.attachToTarget":
            return {"sessionId": f"session-{self._targets}"}
        if method == "DOM.getDocument":
            return {"root": {"nodeId": 1}}
        if method == "DOM.querySelector":
            return {"nodeId": 42 if self.exists else 0}
        if method == "DOM.getBoxModel":
            size = 50 if self.box_area else 0
            return {
                "model": {
                    "content": [10, 20, 110, 20, 110, 20 + size, 10, 20 + size],
                    "width": 100 if self.box_area else 0,
                    "height": size,
                }
            }
        if method == "DOM.getOuterHTML":
            return {"outerHTML": self.html}
        if method == "Input.insertText":
            self.value += params.get("text", "")
            return {}
        if method == "Runtime.evaluate":
            return {"result": {"value": self._evaluate(params["expression"])}}
        return {}

    def _evaluate(self, expression: str) -> Any:
        self.scripts.append(expression)
        if "document.readyState" in expression:
            return True
        if "keypressEvent" in expression:
            return "submitted"
        if "getOwnPropertyDescriptor" in expression:
            if not self.exists:
                return None
            match = _TEXT_RE.search(expression)
            self.value = json.loads(match.group(1)) if match else ""
            return self.value
        if "element.value = ''" in expression:
            if self.exists:
                self.value = ""
            return self.exists
        if "getBoundingClientRect" in expression:
            if not self.exists:
                return {"found": False, "visible": False, "reason": "Element not found"}
            if not self.visible:
                return {
                    "found": True,
                    "visible": False,
                    "reason": "Element is covered by another element",
                }
            return {"found": True, "visible": True}
        if "const field =" in expression:
            return self.exists and self.has_descendant
        if "'value' in element ? element.value" in expression:
            return self.value if self.exists else None
        if "element.style.display" in expression:
            return self.exists
        if "querySelectorAll" in expression:
            return self.exists and self.has_descendant
        if "closest('a[href]')" in expression:
            return self.href if self.exists else None
        if "document.evaluate" in expression:
            return self.text_match
        if "scrollIntoView" in expression:
            return self.exists
        if "element.click()" in expression:
            return self.exists
        if "!== null" in expression:
            return self.exists
        return None


def no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def fake_browser() -> FakeBrowser:
    return FakeBrowser()


@pytest.fixture
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def spare_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def resolver() -> ScriptedResolver:
    return ScriptedResolver(
        selectors={"search box": SelectorInfo(selector="input[name='q']", confidence=0.9)},
    )


@pytest.fixture
def make_context(fake_browser: FakeBrowser, resolver: ScriptedResolver):
    def _make(**kwargs: Any) -> ActionContext:
        options: dict[str, Any] = {
            "connection": fake_browser,
            "resolver": resolver,
            "sessions": SessionRegistry(),
            "timings": TimingConfig(),
            "sleep": no_sleep,
        }
        options.update(kwargs)
        return ActionContext(**options)

    return _make

"""Exception hierarchy shared by the transport, handlers and executor."""

from __future__ import annotations

from typing import Any, Optional


class AutomationError(RuntimeError):
    """Base class for every error raised while automating the browser."""


class BrowserNotFound(AutomationError):
    """No Chromium executable could be located."""


class LaunchTimeout(AutomationError):
    """Raised when the browser never exposes its debugging endpoint."""


class ConnectionClosed(AutomationError):
    """Raised for commands still outstanding when the channel goes away."""


class CommandError(AutomationError):
    """The browser answered a command with an error envelope."""

    def __init__(self, method: str, error: dict[str, Any]) -> None:
        self.method = method
        self.code: Optional[int] = error.get("code")
        self.message = str(error.get("message", error))
        super().__init__(f"{method} failed: {self.message}")


class CommandTimeout(AutomationError):
    """No reply arrived for a command within the configured bound."""


class SessionError(AutomationError):
    """Creating or attaching to a browser target failed."""


class MissingSession(AutomationError):
    """A handler that needs a session was invoked without one."""


class InvalidStep(AutomationError):
    """A step lacks parameters its action requires."""


class ElementNotFound(AutomationError):
    """No element matches the selector after all strategies ran."""


class ElementNotInteractable(AutomationError):
    """The element exists but every interaction strategy failed."""


class ResolverFailure(AutomationError):
    """The selector or content resolver returned no usable result."""


class UnknownAction(AutomationError):
    """The step names an action outside the supported set."""


class PlanValidationError(AutomationError):
    """A translated plan does not match the plan schema."""

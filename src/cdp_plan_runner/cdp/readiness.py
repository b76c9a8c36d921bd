"""Page readiness heuristic shared by navigation-style handlers."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..config import TimingConfig
from . import scripts
from .connection import BrowserConnection

LOGGER = logging.getLogger(__name__)


class PageReadiness:
    """Wait until a freshly navigated page is usable.

    Settle delay, then an in-page ``readyState`` check, then a second delay for late
    script initialisation. This is an approximation; lifecycle events would be the
    exact signal.
    """

    def __init__(
        self,
        timings: Optional[TimingConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._timings = timings or TimingConfig()
        self._sleep = sleep

    def wait(self, connection: BrowserConnection, session_id: str) -> None:
        LOGGER.info("Waiting for page to load completely...")
        self._sleep(self._timings.navigation_settle)
        connection.call(
            "Runtime.evaluate",
            {
                "expression": scripts.WAIT_FOR_LOAD,
                "awaitPromise": True,
                "returnByValue": True,
            },
            session_id,
        )
        self._sleep(self._timings.script_settle)
        LOGGER.info("Page loaded completely")

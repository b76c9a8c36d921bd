"""Duplex DevTools protocol connection multiplexed by command id."""

from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol

import httpx
import websocket

from ..config import BrowserConfig, LaunchConfig
from ..errors import CommandError, CommandTimeout, ConnectionClosed, LaunchTimeout
from .launcher import BrowserLauncher

LOGGER = logging.getLogger(__name__)

EventListener = Callable[[dict[str, Any], Optional[str]], None]

_UNSET: Any = object()


class Channel(Protocol):
    """Minimal surface of the websocket used by :class:`BrowserConnection`."""

    def send(self, payload: str) -> Any: ...

    def recv(self) -> str | bytes: ...

    def close(self) -> None: ...


def connect_websocket(url: str) -> Channel:
    return websocket.create_connection(url, timeout=None, enable_multithread=True)


@dataclass
class PendingCommand:
    """Handle for a command awaiting its reply."""

    command_id: int
    method: str
    session_id: Optional[str] = None
    future: Future = field(default_factory=Future)

    def result(self, timeout: Optional[float] = None) -> dict[str, Any]:
        return self.future.result(timeout=timeout)


class BrowserConnection:
    """Launch a browser and exchange correlated commands with it.

    Any number of threads may call :meth:`send` concurrently; replies are matched to
    their callers by id regardless of arrival order. A single reader thread owns the
    receiving side of the channel.
    """

    def __init__(
        self,
        browser: Optional[BrowserConfig] = None,
        launch: Optional[LaunchConfig] = None,
        *,
        command_timeout: Optional[float] = 30.0,
        launcher: Optional[BrowserLauncher] = None,
        http_client: Optional[httpx.Client] = None,
        channel_factory: Callable[[str], Channel] = connect_websocket,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._browser = browser or BrowserConfig()
        self._launch = launch or LaunchConfig()
        self._command_timeout = command_timeout
        self._launcher = launcher or BrowserLauncher(self._browser, self._launch, sleep=sleep)
        self._http = http_client or httpx.Client()
        self._channel_factory = channel_factory
        self._sleep = sleep
        self._channel: Optional[Channel] = None
        self._reader: Optional[threading.Thread] = None
        self._next_id = 0
        self._pending: dict[int, PendingCommand] = {}
        self._listeners: dict[str, list[EventListener]] = {}
        self._lock = threading.Lock()
        self._send_lock = threading.Lock()
        self._closing = False
        self.version: dict[str, Any] = {}

    def __enter__(self) -> "BrowserConnection":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._channel is not None and not self._closing

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    # Lifecycle --------------------------------------------------------

    def open(self) -> None:
        """Launch the browser, wait for its endpoint and open the channel."""

        if self.is_open:
            return
        port = self._launcher.start()
        try:
            self.version = self.wait_for_endpoint(port)
            self.connect(self.version["webSocketDebuggerUrl"])
        except BaseException:
            self._launcher.stop()
            raise
        LOGGER.info("Browser automation initialized on port %s", port)

    def wait_for_endpoint(self, port: int) -> dict[str, Any]:
        """Poll ``/json/version`` until it answers with version metadata."""

        url = f"http://{self._browser.host}:{port}/json/version"
        attempts = self._launch.poll_attempts
        interval = self._launch.poll_interval
        for attempt in range(1, attempts + 1):
            LOGGER.debug("Checking debugging port, attempt %d/%d", attempt, attempts)
            try:
                response = self._http.get(url, timeout=max(interval, 0.1))
                if response.status_code == 200:
                    version = response.json()
                    if isinstance(version, dict) and version.get("webSocketDebuggerUrl"):
                        LOGGER.info("Connected to %s", version.get("Browser", "browser"))
                        return version
                LOGGER.debug("Debugging endpoint answered %s", response.status_code)
            except (httpx.HTTPError, ValueError) as exc:
                LOGGER.debug("Debugging endpoint not ready: %s", exc)
            if attempt < attempts:
                self._sleep(interval)
        raise LaunchTimeout(f"Debugging port {port} not available after {attempts} attempts")

    def connect(self, url: str) -> None:
        """Open the duplex channel to ``url`` and start the reader thread."""

        LOGGER.info("WebSocket URL: %s", url)
        self._channel = self._channel_factory(url)
        self._closing = False
        self._reader = threading.Thread(
            target=self._read_loop,
            args=(self._channel,),
            name="cdp-reader",
            daemon=True,
        )
        self._reader.start()

    def close(self) -> None:
        """Close the channel and the browser, failing any outstanding command."""

        self._closing = True
        channel = self._channel
        self._channel = None
        if channel is not None:
            try:
                channel.close()
            except (websocket.WebSocketException, OSError):
                LOGGER.debug("Ignoring error while closing channel", exc_info=True)
        reader = self._reader
        self._reader = None
        if reader is not None and reader is not threading.current_thread():
            reader.join(timeout=2)
        self._fail_all("connection closed")
        self._launcher.stop()
        LOGGER.info("Browser connection closed")

    # Commands ---------------------------------------------------------

    def send(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> PendingCommand:
        """Write a command and return a handle completed by its reply."""

        with self._lock:
            channel = self._channel
            if channel is None or self._closing:
                raise ConnectionClosed(f"Cannot send {method}: connection is not open")
            self._next_id += 1
            pending = PendingCommand(self._next_id, method, session_id)
            self._pending[pending.command_id] = pending
        message: dict[str, Any] = {
            "id": pending.command_id,
            "method": method,
            "params": params or {},
        }
        if session_id:
            message["sessionId"] = session_id
        payload = json.dumps(message)
        LOGGER.debug("-> %s", payload)
        try:
            with self._send_lock:
                channel.send(payload)
        except (websocket.WebSocketException, OSError) as exc:
            self._complete(pending.command_id, error=ConnectionClosed(f"{method}: {exc}"))
        return pending

    def call(
        self,
        method: str,
        params: Optional[dict[str, Any]] = None,
        session_id: Optional[str] = None,
        *,
        timeout: Optional[float] = _UNSET,
    ) -> dict[str, Any]:
        """Send a command and block until its result arrives."""

        pending = self.send(method, params, session_id)
        wait = self._command_timeout if timeout is _UNSET else timeout
        try:
            return pending.result(timeout=wait)
        except FutureTimeout:
            with self._lock:
                self._pending.pop(pending.command_id, None)
            raise CommandTimeout(f"No reply to {method} within {wait}s") from None

    # Events -----------------------------------------------------------

    def subscribe(self, method: str, listener: EventListener) -> None:
        with self._lock:
            self._listeners.setdefault(method, []).append(listener)

    def unsubscribe(self, method: str, listener: EventListener) -> None:
        with self._lock:
            listeners = self._listeners.get(method, [])
            if listener in listeners:
                listeners.remove(listener)

    # Internal helpers -------------------------------------------------

    def _read_loop(self, channel: Channel) -> None:
        while True:
            try:
                raw = channel.recv()
            except (websocket.WebSocketException, OSError) as exc:
                if not self._closing:
                    LOGGER.warning("WebSocket connection lost: %s", exc)
                break
            if not raw:
                if self._closing:
                    break
                continue
            self.dispatch(raw)
        with self._lock:
            lost = self._channel is channel
            if lost:
                self._channel = None
        self._fail_all("connection lost")
        if lost and not self._closing:
            LOGGER.warning("Browser connection lost; stopping browser process")
            self._launcher.stop()
        LOGGER.info("WebSocket connection closed")

    def dispatch(self, raw: str | bytes) -> None:
        """Route one inbound frame to the command or listeners it belongs to."""

        LOGGER.debug("<- %s", raw)
        try:
            message = json.loads(raw)
        except ValueError:
            LOGGER.warning("Dropping malformed message from browser: %.200r", raw)
            return
        if not isinstance(message, dict):
            LOGGER.warning("Dropping unexpected message from browser: %.200r", raw)
            return
        command_id = message.get("id")
        if command_id is None:
            self._emit(message)
            return
        if "error" in message:
            with self._lock:
                pending = self._pending.get(command_id)
            method = pending.method if pending else "command"
            self._complete(command_id, error=CommandError(method, message["error"]))
        else:
            self._complete(command_id, result=message.get("result") or {})

    def _complete(
        self,
        command_id: int,
        *,
        result: Optional[dict[str, Any]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        with self._lock:
            pending = self._pending.pop(command_id, None)
        if pending is None:
            LOGGER.debug("Reply for unknown or abandoned command %s", command_id)
            return
        if error is not None:
            pending.future.set_exception(error)
        else:
            pending.future.set_result(result)

    def _fail_all(self, reason: str) -> None:
        with self._lock:
            pending = list(self._pending.values())
            self._pending.clear()
        for command in pending:
            command.future.set_exception(ConnectionClosed(f"{command.method}: {reason}"))

    def _emit(self, message: dict[str, Any]) -> None:
        method = message.get("method")
        if not method:
            return
        with self._lock:
            listeners = list(self._listeners.get(method, ()))
        for listener in listeners:
            try:
                listener(message.get("params") or {}, message.get("sessionId"))
            except Exception:
                LOGGER.exception("Listener for %s failed", method)

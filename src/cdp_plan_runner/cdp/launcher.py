"""Spawn Chromium with remote debugging enabled."""

from __future__ import annotations

import logging
import os
import shutil
import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Callable, Optional

from ..config import BrowserConfig, LaunchConfig
from ..errors import BrowserNotFound

LOGGER = logging.getLogger(__name__)

_EXECUTABLE_NAMES = (
    "google-chrome",
    "google-chrome-stable",
    "chromium",
    "chromium-browser",
    "chrome",
)


def find_free_port(start_port: int, host: str = "127.0.0.1", max_tries: int = 100) -> int:
    """Return the first port at or above ``start_port`` that accepts a bind."""

    for port in range(start_port, start_port + max_tries):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            try:
                sock.bind((host, port))
            except OSError:
                continue
            return port
    raise OSError(f"No free port found in range {start_port}-{start_port + max_tries - 1}")


def locate_browser(configured: Optional[Path] = None) -> Path:
    """Find a Chromium executable, preferring an explicitly configured path."""

    if configured:
        if configured.exists():
            return configured
        raise BrowserNotFound(f"Configured browser executable does not exist: {configured}")
    for name in _EXECUTABLE_NAMES:
        found = shutil.which(name)
        if found:
            return Path(found)
    for candidate in _platform_candidates():
        if candidate.exists():
            return candidate
    raise BrowserNotFound(
        "Chrome executable not found. Set CDP_PLAN_RUNNER_BROWSER__EXECUTABLE to its path."
    )


def _platform_candidates() -> list[Path]:
    if sys.platform == "darwin":
        return [
            Path("/Applications/Google Chrome.app/Contents/MacOS/Google Chrome"),
            Path("/Applications/Chromium.app/Contents/MacOS/Chromium"),
        ]
    if sys.platform == "win32":
        roots = [
            os.environ.get("PROGRAMFILES"),
            os.environ.get("PROGRAMFILES(X86)"),
            os.environ.get("LOCALAPPDATA"),
        ]
        return [
            Path(root) / "Google" / "Chrome" / "Application" / "chrome.exe"
            for root in roots
            if root
        ]
    return []


def build_arguments(config: BrowserConfig, port: int) -> list[str]:
    args = [
        f"--remote-debugging-port={port}",
        "--remote-allow-origins=*",
        "--no-first-run",
        "--no-default-browser-check",
    ]
    if config.headless:
        args.append("--headless=new")
    if config.proxy_server:
        args.append(f"--proxy-server={config.proxy_server}")
    if config.user_data_dir:
        args.append(f"--user-data-dir={config.user_data_dir}")
    args.extend(config.extra_args)
    return args


class BrowserLauncher:
    """Own the lifecycle of the spawned browser process."""

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        launch: Optional[LaunchConfig] = None,
        *,
        process_factory: Callable[..., subprocess.Popen] = subprocess.Popen,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or BrowserConfig()
        self._launch = launch or LaunchConfig()
        self._process_factory = process_factory
        self._sleep = sleep
        self._process: Optional[subprocess.Popen] = None
        self.port: Optional[int] = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def start(self) -> int:
        """Spawn the browser and return the debugging port it listens on."""

        executable = locate_browser(self._config.executable)
        port = find_free_port(self._config.start_port, self._config.host)
        if self._config.user_data_dir:
            self._config.user_data_dir.mkdir(parents=True, exist_ok=True)
        args = build_arguments(self._config, port)
        LOGGER.info("Starting browser %s on debug port %s", executable, port)
        LOGGER.debug("Browser arguments: %s", " ".join(args))
        self._process = self._process_factory(
            [str(executable), *args],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        self.port = port
        if self._launch.startup_delay:
            self._sleep(self._launch.startup_delay)
        return port

    def stop(self) -> None:
        process = self._process
        self._process = None
        if process is None:
            return
        LOGGER.debug("Stopping browser process %s", process.pid)
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            LOGGER.warning("Browser did not exit after terminate; killing it")
            process.kill()
            process.wait(timeout=5)

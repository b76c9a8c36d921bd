"""Registry of attached browser tabs."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterator

from ..errors import MissingSession, SessionError
from .connection import BrowserConnection

LOGGER = logging.getLogger(__name__)

DEFAULT_DOMAINS = ("Page", "DOM", "Runtime", "Network")


@dataclass
class Session:
    """An attached debugging session inside one target (tab)."""

    target_id: str
    session_id: str
    enabled_domains: set[str] = field(default_factory=set)


class SessionRegistry:
    """Track the tabs opened on a connection and the domains enabled on each."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        with self._lock:
            return iter(list(self._sessions.values()))

    def get(self, session_id: str) -> Session:
        with self._lock:
            try:
                return self._sessions[session_id]
            except KeyError:
                raise MissingSession(f"Unknown session {session_id}") from None

    def open_tab(self, connection: BrowserConnection, url: str = "about:blank") -> Session:
        """Create a new target, attach to it and enable the standard domains."""

        created = connection.call("Target.createTarget", {"url": url})
        target_id = created.get("targetId")
        if not target_id:
            raise SessionError("Failed to create new browser tab")
        LOGGER.info("Created new tab with targetId: %s", target_id)

        attached = connection.call(
            "Target.attachToTarget",
            {"targetId": target_id, "flatten": True},
        )
        session_id = attached.get("sessionId")
        if not session_id:
            raise SessionError(f"Failed to attach to target {target_id}")
        LOGGER.info("Attached to target with sessionId: %s", session_id)

        session = Session(target_id=target_id, session_id=session_id)
        with self._lock:
            self._sessions[session_id] = session
        for domain in DEFAULT_DOMAINS:
            self.enable(connection, session_id, domain)
        connection.call("Page.setLifecycleEventsEnabled", {"enabled": True}, session_id)
        return session

    def enable(self, connection: BrowserConnection, session_id: str, domain: str) -> None:
        session = self.get(session_id)
        if domain in session.enabled_domains:
            return
        connection.call(f"{domain}.enable", {}, session_id)
        with self._lock:
            session.enabled_domains.add(domain)

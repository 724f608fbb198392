"""Connection lifecycle — handshake, shutdown and run state of one transport."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Run state of a transport."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    INITIALIZED = "initialized"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


_ACTIVE = frozenset({ConnectionState.RUNNING, ConnectionState.INITIALIZED, ConnectionState.SHUTTING_DOWN})


class Lifecycle:
    """Tracks the ``initialize``/``initialized`` handshake and shutdown.

    Transitions::

        NOT_STARTED -> RUNNING                  start()
        RUNNING -> INITIALIZED                  initialized notification
        RUNNING | INITIALIZED -> SHUTTING_DOWN  shutdown request
        any active state -> STOPPED             stream closed / stop()

    ``initialized`` may arrive before ``initialize``; both orders end in
    INITIALIZED.
    """

    def __init__(self, supported_versions: list[str]) -> None:
        if not supported_versions:
            msg = "At least one protocol version must be supported"
            raise ValueError(msg)
        self._supported = sorted(supported_versions)
        self.state = ConnectionState.NOT_STARTED
        self.protocol_version = self._supported[-1]
        self.client_capabilities: dict[str, Any] | None = None
        self.client_info: dict[str, Any] | None = None
        self.initialize_received = False

    @property
    def is_running(self) -> bool:
        """True while the transport accepts input lines."""
        return self.state in _ACTIVE

    @property
    def initialized(self) -> bool:
        return self.state is ConnectionState.INITIALIZED

    @property
    def shutdown_requested(self) -> bool:
        return self.state is ConnectionState.SHUTTING_DOWN

    @property
    def client_name(self) -> str:
        """Name (and version, when given) from the client's ``clientInfo``."""
        if not self.client_info or not self.client_info.get("name"):
            return "<unknown>"
        version = self.client_info.get("version")
        return f"{self.client_info['name']} {version}" if version else str(self.client_info["name"])

    def start(self) -> bool:
        """Enter RUNNING. Returns ``False`` if already active."""
        if self.is_running:
            return False
        self.state = ConnectionState.RUNNING
        self.initialize_received = False
        return True

    def negotiate(self, requested: str | None) -> str:
        """Pick the protocol version to answer an ``initialize`` with.

        The requested version is echoed when supported; otherwise the newest
        supported version not newer than it, or the oldest supported one when
        the request predates them all.
        """
        if requested is None or not isinstance(requested, str):
            chosen = self._supported[-1]
        elif requested in self._supported:
            chosen = requested
        else:
            older = [v for v in self._supported if v <= requested]
            chosen = older[-1] if older else self._supported[0]
        self.protocol_version = chosen
        return chosen

    def record_initialize(
        self,
        capabilities: dict[str, Any] | None,
        client_info: dict[str, Any] | None = None,
    ) -> None:
        self.initialize_received = True
        if capabilities is not None:
            self.client_capabilities = capabilities
        if client_info is not None:
            self.client_info = client_info
        if self.initialized:
            logger.info("Client %s initialized (protocol %s)", self.client_name, self.protocol_version)

    def mark_initialized(self) -> None:
        if self.state is not ConnectionState.RUNNING:
            logger.debug("Ignoring initialized notification in state %s", self.state.value)
            return
        self.state = ConnectionState.INITIALIZED
        if not self.initialize_received:
            logger.debug("Client initialized before sending initialize")
        else:
            logger.info("Client %s initialized (protocol %s)", self.client_name, self.protocol_version)

    def request_shutdown(self) -> None:
        if self.state in (ConnectionState.RUNNING, ConnectionState.INITIALIZED):
            self.state = ConnectionState.SHUTTING_DOWN

    def stop(self) -> bool:
        """Enter STOPPED. Returns ``False`` if the transport was not active."""
        if not self.is_running:
            return False
        self.state = ConnectionState.STOPPED
        return True

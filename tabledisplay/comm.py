"""Comm channel between a widget and its front-end view.

The real transport belongs to the host (a notebook kernel); this module only
defines the interface a widget talks to, an in-memory implementation used
when no host transport is installed, and a factory hook the host uses to
plug its own transport in.

Usage:
    from tabledisplay.comm import set_comm_factory

    set_comm_factory(lambda: KernelComm(target_name="beakerx.tabledisplay"))
"""

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

MessageCallback = Callable[[Dict[str, Any]], None]


class Comm(ABC):
    """Bidirectional message channel to one front-end view."""

    @property
    @abstractmethod
    def comm_id(self) -> str:
        """Identifier the front end uses to find the view's model."""
        ...

    @abstractmethod
    def open(self, data: Dict[str, Any]) -> None:
        """Open the channel, sending the initial state."""
        ...

    @abstractmethod
    def send(self, data: Dict[str, Any]) -> None:
        """Send one message to the view."""
        ...

    @abstractmethod
    def on_msg(self, callback: MessageCallback) -> None:
        """Register a callback for inbound messages.

        Callbacks are called in registration order with the decoded message
        and are expected to run to completion before returning.
        """
        ...

    def close(self) -> None:
        """Close the channel."""
        pass


class InMemoryComm(Comm):
    """Comm that records outbound messages and delivers inbound ones locally.

    Used when no kernel transport is installed, and by tests to stand in
    for the front end.
    """

    def __init__(self, comm_id: Optional[str] = None):
        self._comm_id = comm_id or uuid.uuid4().hex
        self._callbacks: List[MessageCallback] = []
        self.opened: Optional[Dict[str, Any]] = None
        self.sent: List[Dict[str, Any]] = []
        self.closed = False

    @property
    def comm_id(self) -> str:
        return self._comm_id

    @property
    def is_open(self) -> bool:
        return self.opened is not None and not self.closed

    def open(self, data: Dict[str, Any]) -> None:
        if self.opened is not None:
            raise RuntimeError(f"Comm {self._comm_id} is already open")
        self.opened = data
        logger.debug(f"Comm {self._comm_id} opened")

    def send(self, data: Dict[str, Any]) -> None:
        if not self.is_open:
            raise RuntimeError(f"Comm {self._comm_id} is not open")
        self.sent.append(data)

    def on_msg(self, callback: MessageCallback) -> None:
        self._callbacks.append(callback)

    def close(self) -> None:
        self.closed = True

    def receive(self, data: Dict[str, Any]) -> None:
        """Deliver an inbound message as if it came from the view."""
        for callback in self._callbacks:
            callback(data)


_comm_factory: Callable[[], Comm] = InMemoryComm


def set_comm_factory(factory: Optional[Callable[[], Comm]]) -> None:
    """Install the factory used for new widgets (None restores the default)."""
    global _comm_factory
    _comm_factory = factory or InMemoryComm


def create_comm() -> Comm:
    """Create a comm with the installed factory."""
    return _comm_factory()


__all__ = [
    "MessageCallback",
    "Comm",
    "InMemoryComm",
    "set_comm_factory",
    "create_comm",
]

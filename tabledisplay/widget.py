"""Widget base: comm lifecycle and model pushes.

A widget is ``UNINITIALIZED`` until its comm is opened, which happens once,
with the complete serialized model. From then on it is ``LIVE`` and every
change is pushed as an update. Nothing tears the comm down before the
session ends.
"""

import logging
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional

from .comm import Comm, create_comm
from .events import MODEL_MODULE, MODEL_NAME, VIEW_NAME, CommOpen, ModelUpdate

logger = logging.getLogger(__name__)

WIDGET_VIEW_MIMETYPE = "application/vnd.jupyter.widget-view+json"


class WidgetState(Enum):
    """Comm lifecycle state."""
    UNINITIALIZED = "uninitialized"
    LIVE = "live"


class Widget(ABC):
    """Base class for widgets synchronized with a front-end view.

    Subclasses provide the model and handle inbound messages. All model
    reads and writes go through ``self._lock`` (re-entrant, so a message
    handler may call mutators).
    """

    model_name: str = MODEL_NAME
    view_name: str = VIEW_NAME
    model_module: str = MODEL_MODULE
    view_module: str = MODEL_MODULE

    def __init__(self, comm: Optional[Comm] = None):
        self._comm = comm
        self._state = WidgetState.UNINITIALIZED
        self._lock = threading.RLock()

    @property
    def state(self) -> WidgetState:
        return self._state

    @property
    def comm(self) -> Optional[Comm]:
        return self._comm

    @abstractmethod
    def serialize_model(self) -> Dict[str, Any]:
        """Complete model as a JSON-ready dict."""
        ...

    @abstractmethod
    def handle_message(self, data: Dict[str, Any]) -> None:
        """Handle one inbound message from the view."""
        ...

    def open_comm(self) -> None:
        """Open the comm with the full model and go live.

        Raises:
            RuntimeError: If the comm was already opened.
        """
        with self._lock:
            if self._state == WidgetState.LIVE:
                raise RuntimeError("Comm is already open")
            if self._comm is None:
                self._comm = create_comm()
            self._comm.on_msg(self._on_comm_msg)
            opening = CommOpen(
                model=self.serialize_model(),
                model_name=self.model_name,
                view_name=self.view_name,
                model_module=self.model_module,
                view_module=self.view_module,
            )
            self._comm.open(opening.to_dict())
            self._state = WidgetState.LIVE
            logger.info(f"{type(self).__name__} live on comm {self._comm.comm_id}")

    def send_model(self) -> None:
        """Push the complete model."""
        with self._lock:
            self._send(ModelUpdate(fields=self.serialize_model(), full=True))

    def send_model_update(self, fields: Dict[str, Any]) -> None:
        """Push only the given model fields."""
        self._send(ModelUpdate(fields=fields))

    def _send(self, update: ModelUpdate) -> None:
        if self._state != WidgetState.LIVE:
            logger.debug(f"Not live, dropping update of {sorted(update.fields)}")
            return
        logger.debug(f"Sending {update.state_key}: {sorted(update.fields)}")
        self._comm.send(update.to_dict())

    def _on_comm_msg(self, data: Dict[str, Any]) -> None:
        with self._lock:
            self.handle_message(data)

    def _plain_text(self) -> str:
        """Text shown where the view cannot be rendered."""
        return repr(self)

    def _repr_mimebundle_(self, include=None, exclude=None) -> Dict[str, Any]:
        bundle: Dict[str, Any] = {"text/plain": self._plain_text()}
        if self._comm is not None:
            bundle[WIDGET_VIEW_MIMETYPE] = {
                "version_major": 2,
                "version_minor": 0,
                "model_id": self._comm.comm_id,
            }
        return bundle


__all__ = ["WIDGET_VIEW_MIMETYPE", "WidgetState", "Widget"]

"""Message protocol between a table and its front-end view.

Messages are JSON-serializable dataclasses carried over the comm.

Message Flow:
    Kernel -> View: comm open with the full model, then model updates
        (one field per mutator, or the full model after a listener ran)
    View -> Kernel: interactions (details, double-click, context menu,
        cell edit)

Wire shapes:
    open:    {"state": {"_model_name": ..., "model": {...}}, "buffer_paths": []}
    full:    {"method": "update", "state": {"model": {...}}, "buffer_paths": []}
    partial: {"method": "update", "state": {"updateData": {...}}, "buffer_paths": []}
    inbound: {"kind": "doubleClick", "name": null, "payload": {"row": 0, "column": 1}}
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union
import json

MODEL_MODULE = "beakerx_tabledisplay"
MODEL_NAME = "TableDisplayModel"
VIEW_NAME = "TableDisplayView"

# State keys used by the front end
MODEL = "model"
MODEL_UPDATE = "updateData"


class InteractionKind(str, Enum):
    """Inbound message kinds."""
    DETAILS = "details"
    DOUBLE_CLICK = "doubleClick"
    CONTEXT_MENU = "contextMenu"
    CELL_EDIT = "cellEdit"


# =============================================================================
# Kernel -> View
# =============================================================================

@dataclass
class CommOpen:
    """Initial state sent once, when the comm opens."""
    model: Dict[str, Any] = field(default_factory=dict)
    model_name: str = MODEL_NAME
    view_name: str = VIEW_NAME
    model_module: str = MODEL_MODULE
    view_module: str = MODEL_MODULE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state": {
                "_model_name": self.model_name,
                "_view_name": self.view_name,
                "_model_module": self.model_module,
                "_view_module": self.view_module,
                MODEL: self.model,
            },
            "buffer_paths": [],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class ModelUpdate:
    """An update of the view's model.

    ``full`` updates replace the whole model; partial ones carry only the
    fields that changed.
    """
    fields: Dict[str, Any] = field(default_factory=dict)
    full: bool = False

    @property
    def state_key(self) -> str:
        return MODEL if self.full else MODEL_UPDATE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": "update",
            "state": {self.state_key: self.fields},
            "buffer_paths": [],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


# =============================================================================
# View -> Kernel
# =============================================================================

@dataclass
class InteractionMessage:
    """A user interaction reported by the view.

    ``name`` is required for context-menu clicks and ignored otherwise.
    """
    kind: InteractionKind
    payload: Dict[str, Any] = field(default_factory=dict)
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "name": self.name, "payload": self.payload}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InteractionMessage":
        """Parse an inbound message.

        Raises:
            ValueError: If the kind is unknown, the payload is not an object,
                or a context-menu message has no name.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")
        raw_kind = data.get("kind")
        try:
            kind = InteractionKind(raw_kind)
        except ValueError:
            raise ValueError(f"Unknown interaction kind: {raw_kind}") from None

        payload = data.get("payload") or {}
        if not isinstance(payload, dict):
            raise ValueError(f"Payload for {kind.value} must be an object")

        name = data.get("name")
        if kind == InteractionKind.CONTEXT_MENU and not name:
            raise ValueError("contextMenu message requires a name")

        return cls(kind=kind, payload=payload, name=name)


def deserialize_interaction(message: Union[str, Dict[str, Any]]) -> InteractionMessage:
    """Parse an inbound message from a JSON string or an already-decoded dict.

    Raises:
        ValueError: If the message is not a valid interaction.
        json.JSONDecodeError: If the JSON is invalid.
    """
    data = json.loads(message) if isinstance(message, str) else message
    return InteractionMessage.from_dict(data)


__all__ = [
    "MODEL_MODULE",
    "MODEL_NAME",
    "VIEW_NAME",
    "MODEL",
    "MODEL_UPDATE",
    "InteractionKind",
    "CommOpen",
    "ModelUpdate",
    "InteractionMessage",
    "deserialize_interaction",
]

"""Dispatch of inbound interaction messages to a table.

Messages that cannot be parsed are logged and ignored. Failures raised by
user listeners are not caught here; the table wraps them in
``InteractionHandlerError`` and they propagate to the host's message loop.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from .events import InteractionKind, InteractionMessage, deserialize_interaction

if TYPE_CHECKING:
    from .table_display import TableDisplay

logger = logging.getLogger(__name__)


class TableActionType(str, Enum):
    """Kinds of action a details payload can describe."""
    DOUBLE_CLICK = "DOUBLE_CLICK"
    CONTEXT_MENU_CLICK = "CONTEXT_MENU_CLICK"


@dataclass
class TableActionDetails:
    """What the user last acted on, as reported by the view.

    Attributes:
        action_type: Double-click or context-menu click, if known.
        row: Row index of the cell.
        col: Column index of the cell.
        context_menu_item: Name of the clicked context-menu entry.
        tag: Tag of the action, for tag-based actions resolved by the view.
    """
    action_type: Optional[TableActionType] = None
    row: Optional[int] = None
    col: Optional[int] = None
    context_menu_item: Optional[str] = None
    tag: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TableActionDetails":
        raw_type = data.get("actionType")
        try:
            action_type = TableActionType(raw_type) if raw_type else None
        except ValueError:
            logger.warning(f"Unknown action type in details: {raw_type}")
            action_type = None
        return cls(
            action_type=action_type,
            row=data.get("row"),
            col=data.get("col"),
            context_menu_item=data.get("contextMenuItem"),
            tag=data.get("tag"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "actionType": self.action_type.value if self.action_type else None,
            "row": self.row,
            "col": self.col,
            "contextMenuItem": self.context_menu_item,
            "tag": self.tag,
        }


def _index(value: Any, size: int) -> bool:
    """True if ``value`` is a usable position in a sequence of ``size``."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value < size


def _cell(payload: Dict[str, Any], row_count: int, column_count: int) -> Tuple[int, int]:
    """Row and column indices from an interaction payload."""
    row, column = payload.get("row"), payload.get("column")
    if not _index(row, row_count) or not _index(column, column_count):
        raise ValueError(f"Payload needs row and column indices inside the table, got {payload}")
    return row, column


class TableDisplayActions:
    """Routes inbound messages to the owning table."""

    def __init__(self, table: "TableDisplay"):
        self._table = table
        self._handlers: Dict[InteractionKind, Callable[[InteractionMessage], None]] = {
            InteractionKind.DETAILS: self.handle_set_details,
            InteractionKind.DOUBLE_CLICK: self.handle_double_click,
            InteractionKind.CONTEXT_MENU: self.handle_on_context_menu,
            InteractionKind.CELL_EDIT: self.handle_cell_edit,
        }

    def dispatch(self, data: Dict[str, Any]) -> None:
        """Parse and route one inbound message."""
        try:
            message = deserialize_interaction(data)
        except ValueError as e:
            logger.warning(f"Ignoring inbound message: {e}")
            return
        logger.debug(f"Dispatching {message.kind.value} (name={message.name})")
        self._handlers[message.kind](message)

    def handle_set_details(self, message: InteractionMessage) -> None:
        self._table.details = TableActionDetails.from_dict(message.payload)

    def _table_cell(self, payload: Dict[str, Any]) -> Tuple[int, int]:
        return _cell(payload, len(self._table.values), len(self._table.column_names))

    def handle_double_click(self, message: InteractionMessage) -> None:
        try:
            row, column = self._table_cell(message.payload)
        except ValueError as e:
            logger.warning(f"Ignoring double click: {e}")
            return
        self._table.fire_double_click(row, column)

    def handle_on_context_menu(self, message: InteractionMessage) -> None:
        try:
            row, column = self._table_cell(message.payload)
        except ValueError as e:
            logger.warning(f"Ignoring context menu click: {e}")
            return
        self._table.fire_context_menu_click(message.name, row, column)

    def handle_cell_edit(self, message: InteractionMessage) -> None:
        payload = message.payload
        row, column = payload.get("row"), payload.get("column")
        if not _index(row, len(self._table.values)) or not isinstance(column, str):
            logger.warning(f"Ignoring cell edit with bad payload: {payload}")
            return
        try:
            self._table.apply_cell_edit(row, column, payload.get("value"))
        except (KeyError, IndexError) as e:
            logger.warning(f"Ignoring cell edit: {e}")


__all__ = ["TableActionType", "TableActionDetails", "TableDisplayActions"]

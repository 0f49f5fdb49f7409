"""Error types for table display.

Validation failures (bad input shape, unknown column) are kept apart from
wrapped callable failures so callers can tell a mistake in their arguments
from a user function that raised while the table was being decorated.
"""

from typing import Optional


class TableDisplayError(Exception):
    """Base class for table display errors."""
    pass


class InvalidShape(TableDisplayError, ValueError):
    """Raw input could not be normalized into a rectangular table.

    Raised only during construction; no table object is created.
    """

    def __init__(self, reason: str, row_index: Optional[int] = None):
        self.reason = reason
        self.row_index = row_index
        if row_index is None:
            message = reason
        else:
            message = f"{reason} (row {row_index})"
        super().__init__(message)


class UnknownColumn(TableDisplayError, KeyError):
    """A setter referenced a column name that is not in the table."""

    def __init__(self, column: str):
        self.column = column
        super().__init__(column)

    def __str__(self) -> str:
        return f"Column {self.column!r} doesn't exist"


class DecoratorEvaluationError(TableDisplayError):
    """A user callable raised while being evaluated over the table.

    The original exception is available as ``__cause__`` and ``original``.
    Decorator state from before the call is left untouched.
    """

    def __init__(self, operation: str, original: BaseException):
        self.operation = operation
        self.original = original
        super().__init__(f"Can not {operation} using callable: {original}")


class InteractionHandlerError(TableDisplayError):
    """A listener raised while handling an inbound interaction message."""

    def __init__(self, kind: str, original: BaseException, name: Optional[str] = None):
        self.kind = kind
        self.name = name
        self.original = original
        target = f"{kind}:{name}" if name else kind
        super().__init__(f"Handler for {target} failed: {original}")


__all__ = [
    "TableDisplayError",
    "InvalidShape",
    "UnknownColumn",
    "DecoratorEvaluationError",
    "InteractionHandlerError",
]

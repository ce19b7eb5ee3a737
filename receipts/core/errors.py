"""
Exceptions raised while building a receipt document.
"""

from __future__ import annotations

from typing import Any


class ReceiptError(Exception):
    """Base exception for the receipts renderer."""
    pass


class MissingRequiredFieldError(ReceiptError, KeyError):
    """A field a renderer needs is absent from the call and from the template defaults."""

    def __init__(self, field: str, section: str | None = None):
        self.field = field
        self.section = section
        where = f" (needed by {section})" if section else ""
        super().__init__(f"Missing required field '{field}'{where}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class InvalidTableShapeError(ReceiptError, ValueError):
    """A table-backed section does not have enough rows to be laid out."""

    def __init__(self, table: str, rows: int, minimum: int = 2, reason: str | None = None):
        self.table = table
        self.rows = rows
        self.minimum = minimum
        super().__init__(reason or f"Table '{table}' needs at least {minimum} rows, got {rows}")


class ImageLoadError(ReceiptError, OSError):
    """The logo could not be opened or decoded."""

    def __init__(self, source: Any, reason: str = ""):
        self.source = source
        msg = f"Could not load image {source!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class MarkupError(ReceiptError, ValueError):
    """Inline markup could not be parsed."""
    pass

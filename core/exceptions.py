"""
Error taxonomy for the import/export engine.

Whole-operation problems (configuration, missing sheet, unreadable
workbook) abort the call; cell-level problems are reported per row.
"""

from typing import Any, Optional


class ExcelError(Exception):
    """Base class for all engine errors."""

    kind = "ExcelError"


class ConfigurationError(ExcelError):
    """Record type or column metadata cannot be used."""

    kind = "ConfigurationError"


class NotFoundError(ExcelError):
    """Requested sheet does not exist in the workbook."""

    kind = "NotFoundError"

    def __init__(self, sheet_name: str, available: Optional[list] = None):
        self.sheet_name = sheet_name
        self.available = available or []
        super().__init__(
            f"Sheet '{sheet_name}' not found (available: {self.available})"
        )


class FormatError(ExcelError, ValueError):
    """Cell text cannot be coerced to the column's declared type."""

    kind = "FormatError"

    def __init__(
        self,
        value: Any,
        reason: str,
        row: Optional[int] = None,
        column: Optional[int] = None,
        field_name: Optional[str] = None,
    ):
        self.value = value
        self.reason = reason
        self.row = row
        self.column = column
        self.field_name = field_name
        super().__init__(self._render())

    def _render(self) -> str:
        where = ""
        if self.row is not None:
            where = f" at row {self.row}, column {self.column} ({self.field_name})"
        return f"Cannot convert '{self.value}'{where}: {self.reason}"

    def at(self, row: int, column: int, field_name: str) -> "FormatError":
        """Attach sheet coordinates to an error raised during coercion."""
        self.row = row
        self.column = column
        self.field_name = field_name
        self.args = (self._render(),)
        return self


class AccessError(ExcelError):
    """Accessor on a nested path is missing or failed when called."""

    kind = "AccessError"


class DocumentError(ExcelError):
    """Workbook container or stream could not be read or written."""

    kind = "DocumentError"


class ExportError(ExcelError):
    """Export aborted; the original failure is chained as __cause__."""

    kind = "ExportError"

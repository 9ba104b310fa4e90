"""
Import-related Pydantic schemas.

This module contains the result of reading records from a worksheet.
"""

from typing import Any, List, Optional
from pydantic import BaseModel, Field

from core.exceptions import ExcelError, FormatError


class RowDiagnostic(BaseModel):
    """One problem found while importing."""

    kind: str = Field(..., description="Error class name, e.g. FormatError")
    message: str = Field(..., description="Human readable description")
    row: Optional[int] = Field(None, description="Zero-based sheet row (header is 0); None for whole-import errors")
    column: Optional[int] = Field(None, description="1-based column ordinal")
    field: Optional[str] = Field(None, description="Record field name")
    value: Optional[str] = Field(None, description="Offending cell text")

    @classmethod
    def from_error(cls, error: ExcelError) -> "RowDiagnostic":
        if isinstance(error, FormatError):
            return cls(
                kind=error.kind,
                message=str(error),
                row=error.row,
                column=error.column,
                field=error.field_name,
                value=None if error.value is None else str(error.value)
            )
        return cls(kind=error.kind, message=str(error))


class ImportResult(BaseModel):
    """Records read from a sheet plus row accounting and diagnostics."""

    records: List[Any] = Field(default_factory=list, description="Imported records in sheet order")
    sheet_name: Optional[str] = Field(None, description="Title of the sheet that was read")
    total_rows: int = Field(0, description="Data rows visited (header excluded)")
    imported_rows: int = Field(0, description="Rows that produced a record")
    skipped_rows: int = Field(0, description="Rows with every column empty")
    failed_rows: int = Field(0, description="Rows dropped because a cell could not be converted")
    diagnostics: List[RowDiagnostic] = Field(default_factory=list, description="Problems encountered")

    class Config:
        json_schema_extra = {
            "example": {
                "records": [],
                "sheet_name": "dept",
                "total_rows": 3,
                "imported_rows": 1,
                "skipped_rows": 1,
                "failed_rows": 1,
                "diagnostics": [{
                    "kind": "FormatError",
                    "message": "Cannot convert 'abc' at row 2, column 1 (dept_id): not a base-10 integer (long)",
                    "row": 2,
                    "column": 1,
                    "field": "dept_id",
                    "value": "abc"
                }]
            }
        }

    @property
    def error_count(self) -> int:
        return len(self.diagnostics)

    @property
    def success(self) -> bool:
        """True when no whole-import error occurred."""
        return not any(d.row is None for d in self.diagnostics)

    def add_error(self, error: ExcelError):
        self.diagnostics.append(RowDiagnostic.from_error(error))

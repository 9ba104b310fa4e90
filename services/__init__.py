"""
Service layer for the Excel import/export engine.

This package contains framework-agnostic logic that maps annotated
pydantic record types to worksheets and back.
"""

from services.column_registry import ColumnDescriptor, ColumnKind, ExcelColumn, discover, get_registry
from services.excel_util import ExcelUtil

__version__ = "1.0.0"

__all__ = [
    'ColumnDescriptor',
    'ColumnKind',
    'ExcelColumn',
    'ExcelUtil',
    'discover',
    'get_registry',
]

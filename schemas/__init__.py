"""
Pydantic schemas for import and export results.
"""

from schemas.common import OperationResult
from schemas.import_schema import RowDiagnostic, ImportResult
from schemas.export_schema import ExportResult

__all__ = [
    # Common
    'OperationResult',

    # Import
    'RowDiagnostic',
    'ImportResult',

    # Export
    'ExportResult',
]

"""
Excel import/export facade.

Binds a record type to the import and export services using the
application settings:

    util = ExcelUtil(SysDept)
    result = util.import_excel(upload_bytes)
    envelope = util.export_excel(result.records, "dept")
"""

import logging
from typing import Generic, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel

from core.config import Settings, get_settings
from core.exceptions import ExportError
from schemas.common import OperationResult
from schemas.import_schema import ImportResult
from services.column_registry import ColumnDescriptor, get_registry
from services.excel_export_service import ExcelExportService
from services.excel_import_service import ExcelImportService, WorkbookSource
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class ExcelUtil(Generic[T]):
    """Import and export records of one type."""

    def __init__(self, record_type: Type[T], settings: Optional[Settings] = None):
        """
        Args:
            record_type: Pydantic model whose fields carry ExcelColumn metadata
            settings: Settings override (default: cached application settings)

        Raises:
            ConfigurationError: If the record type has no usable columns
        """
        self.record_type = record_type
        self.settings = settings or get_settings()
        self.registry = get_registry(record_type)
        self.storage = StorageService(self.settings.DOWNLOAD_PATH)

    @property
    def columns(self) -> Sequence[ColumnDescriptor]:
        return self.registry.columns

    def import_excel(self, source: WorkbookSource, sheet_name: Optional[str] = "",
                     strict: Optional[bool] = None) -> ImportResult:
        """
        Read records from a workbook.

        Args:
            source: Workbook bytes, binary stream, or path
            sheet_name: Sheet to read; empty selects the first sheet
            strict: Raise on the first bad cell (default: STRICT_IMPORT setting)
        """
        if strict is None:
            strict = self.settings.STRICT_IMPORT

        service = ExcelImportService(self.record_type, strict=strict)
        return service.import_excel(source, sheet_name)

    def export_excel(self, records: Sequence[Optional[T]], sheet_name: str) -> OperationResult:
        """
        Write records to a new workbook in the download directory.

        Returns:
            Success envelope with the generated filename as message and the
            export details as data, or a failure envelope with the reason
        """
        service = ExcelExportService(
            self.record_type,
            self.storage,
            sheet_size=self.settings.SHEET_SIZE,
            note_marker=self.settings.NOTE_MARKER,
            note_column_width=self.settings.NOTE_COLUMN_WIDTH,
            validation_rows=(self.settings.VALIDATION_FIRST_ROW, self.settings.VALIDATION_LAST_ROW),
            extension=self.settings.EXPORT_EXTENSION
        )

        try:
            export = service.export_excel(list(records), sheet_name)
        except ExportError as e:
            logger.warning(f"Export of {self.record_type.__name__} returned a failure result")
            return OperationResult.error(f"Excel export failed: {e}")

        return OperationResult.ok(export.filename, data=export.model_dump())

"""
Excel Import Service - Framework-agnostic business logic.

This module reads the rows of one worksheet into records of a registered
type. Column N of the sheet feeds the field with ordinal N; the first row
is always the header.
"""

import logging
import zipfile
from io import BytesIO
from pathlib import Path
from typing import Any, BinaryIO, List, Optional, Sequence, Tuple, Type, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel

from core.exceptions import ConfigurationError, DocumentError, FormatError, NotFoundError
from schemas.import_schema import ImportResult, RowDiagnostic
from services.column_registry import ColumnKind, ColumnRegistry, get_registry
from services.type_coercion import cell_to_text, coerce

logger = logging.getLogger(__name__)

WorkbookSource = Union[bytes, BinaryIO, str, Path]


class ExcelImportService:
    """
    Import worksheet rows as records.

    Cell conversion failures drop the row and are reported as diagnostics,
    unless the service is strict, in which case the first failure is raised.
    """

    def __init__(self, record_type: Type[BaseModel], strict: bool = False):
        """
        Initialize import service.

        Args:
            record_type: Pydantic model whose fields carry ExcelColumn metadata
            strict: Raise FormatError on the first bad cell instead of
                    skipping the row
        """
        self.registry: ColumnRegistry = get_registry(record_type)
        self.strict = strict

    def _open_workbook(self, source: WorkbookSource):
        """Open a workbook from bytes, a binary stream or a path."""
        if isinstance(source, (bytes, bytearray)):
            source = BytesIO(source)

        try:
            return openpyxl.load_workbook(source, read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
            raise DocumentError(f"Cannot read workbook: {e}") from e

    def _resolve_sheet(self, workbook, sheet_name: Optional[str]):
        """Named sheet when given, otherwise the first sheet."""
        if sheet_name:
            if sheet_name not in workbook.sheetnames:
                raise NotFoundError(sheet_name, workbook.sheetnames)
            return workbook[sheet_name]
        return workbook.worksheets[0]

    def _cell_error(self, error: FormatError, row_index: int, descriptor,
                    errors: List[FormatError]):
        """Attach coordinates; raise when strict, otherwise collect."""
        error.at(row_index, descriptor.ordinal, descriptor.field_name)
        if self.strict:
            raise error
        errors.append(error)

    def _read_row(self, row_index: int, cells: Sequence[Any],
                  result: ImportResult) -> Optional[BaseModel]:
        """
        Convert one sheet row into a record.

        Values are buffered so that the record is only created once some
        cell turns out to be non-empty.

        Returns:
            The record, or None if the row is empty or had bad cells
        """
        buffered: List[Tuple[Any, Any]] = []
        errors: List[FormatError] = []
        has_content = False

        for descriptor in self.registry.columns:
            raw = cells[descriptor.index] if descriptor.index < len(cells) else None
            if raw is None or raw == "":
                continue

            has_content = True

            if descriptor.kind is ColumnKind.OBJECT:
                logger.debug(f"Row {row_index}: column {descriptor.ordinal} ({descriptor.field_name}) "
                             f"has no import conversion, value ignored")
                continue

            try:
                text = cell_to_text(raw, descriptor.kind)
                value = coerce(text, descriptor.kind, descriptor.date_format)
            except FormatError as e:
                self._cell_error(e, row_index, descriptor, errors)
                continue

            buffered.append((descriptor, value))

        if not has_content:
            result.skipped_rows += 1
            return None

        record = None
        if not errors:
            record = self.registry.new_record()
            for descriptor, value in buffered:
                try:
                    self.registry.write_field(record, descriptor, value)
                except FormatError as e:
                    self._cell_error(e, row_index, descriptor, errors)

        if errors:
            result.failed_rows += 1
            for error in errors:
                logger.warning(str(error))
                result.diagnostics.append(RowDiagnostic.from_error(error))
            return None

        return record

    def import_excel(self, source: WorkbookSource, sheet_name: Optional[str] = "") -> ImportResult:
        """
        Main import workflow.

        Args:
            source: Workbook bytes, binary stream, or path to an .xlsx/.xlsm file
            sheet_name: Sheet to read; empty selects the first sheet

        Returns:
            ImportResult with the records read so far. Whole-import failures
            (unreadable workbook, missing sheet, record type that cannot be
            constructed) end the import and appear as diagnostics without a row.

        Raises:
            FormatError: Only when the service is strict
        """
        type_name = self.registry.record_type.__name__
        result = ImportResult(sheet_name=sheet_name or None)

        try:
            workbook = self._open_workbook(source)
        except DocumentError as e:
            logger.error(f"Import of {type_name} failed: {e}")
            result.add_error(e)
            return result

        try:
            sheet = self._resolve_sheet(workbook, sheet_name)
            result.sheet_name = sheet.title
            logger.info(f"Importing {type_name} from sheet '{sheet.title}' "
                        f"({self.registry.column_count} columns)")

            rows = sheet.iter_rows(min_row=2, values_only=True)
            for row_index, cells in enumerate(rows, start=1):
                result.total_rows += 1
                record = self._read_row(row_index, cells, result)
                if record is not None:
                    result.records.append(record)
                    result.imported_rows += 1

        except (NotFoundError, ConfigurationError) as e:
            logger.error(f"Import of {type_name} failed: {e}")
            result.add_error(e)
        finally:
            workbook.close()

        logger.info(f"Import complete: {result.imported_rows} records, "
                    f"{result.skipped_rows} empty rows, {result.failed_rows} failed rows")
        return result

"""
Excel Export Service - Framework-agnostic business logic.

This module writes records of a registered type to a new workbook, one
sheet per page of at most `sheet_size` rows, and stores the result in the
download directory under a unique name.
"""

import logging
import math
from typing import Optional, Sequence, Tuple, Type

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.datavalidation import DataValidation
from pydantic import BaseModel

from core.exceptions import ExportError
from schemas.export_schema import ExportResult
from services.column_registry import ColumnDescriptor, ColumnRegistry, get_registry
from services.storage_service import StorageService
from services.value_resolver import ValueResolver

logger = logging.getLogger(__name__)

DEFAULT_SHEET_SIZE = 65536
DEFAULT_NOTE_MARKER = "注："
DEFAULT_NOTE_COLUMN_WIDTH = 6000
DEFAULT_VALIDATION_ROWS = (1, 100)

LIGHT_YELLOW = "FFFFFFCC"
YELLOW = "FFFFFF00"
RED = "FFFF0000"


class HeaderStyles:
    """Style objects shared by the cells of one export."""

    def __init__(self):
        self.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        self.title_font = Font(bold=True)
        self.title_fill = PatternFill(fill_type="solid", fgColor=LIGHT_YELLOW)
        self.note_font = Font(color=RED)
        self.note_fill = PatternFill(fill_type="solid", fgColor=YELLOW)
        self.data_alignment = Alignment(horizontal="center", vertical="center")


def page_count(total: int, sheet_size: int = DEFAULT_SHEET_SIZE) -> int:
    """Number of sheets needed for `total` rows; at least one."""
    return max(1, math.ceil(total / sheet_size))


def write_text(cell, text: str):
    """Store text in a cell as a string, even if it looks like a formula."""
    cell.value = text
    cell.data_type = "s"


class ExcelExportService:
    """
    Export records to a stored workbook.

    Export is all-or-nothing: any failure removes the partial file and
    raises a single ExportError.
    """

    def __init__(
        self,
        record_type: Type[BaseModel],
        storage: StorageService,
        sheet_size: int = DEFAULT_SHEET_SIZE,
        note_marker: str = DEFAULT_NOTE_MARKER,
        note_column_width: int = DEFAULT_NOTE_COLUMN_WIDTH,
        validation_rows: Tuple[int, int] = DEFAULT_VALIDATION_ROWS,
        extension: str = ".xlsx"
    ):
        """
        Initialize export service.

        Args:
            record_type: Pydantic model whose fields carry ExcelColumn metadata
            storage: Storage service for the download directory
            sheet_size: Maximum data rows per sheet
            note_marker: Header text marker that selects note styling
            note_column_width: Width of note columns in 1/256 of a character
            validation_rows: Zero-based (first, last) data rows that receive
                             dropdown and prompt validations
            extension: Extension of the stored file
        """
        if sheet_size < 1:
            raise ValueError(f"sheet_size must be positive, got {sheet_size}")

        self.registry: ColumnRegistry = get_registry(record_type)
        self.resolver = ValueResolver(self.registry)
        self.storage = storage
        self.sheet_size = sheet_size
        self.note_marker = note_marker
        self.note_column_width = note_column_width
        self.validation_rows = validation_rows
        self.extension = extension

    def _validation_range(self, descriptor: ColumnDescriptor) -> str:
        letter = get_column_letter(descriptor.ordinal)
        first, last = self.validation_rows
        return f"{letter}{first + 1}:{letter}{last + 1}"

    def _add_prompt(self, sheet, descriptor: ColumnDescriptor):
        """Show the column prompt when a data cell is selected."""
        validation = DataValidation(
            allow_blank=True,
            showInputMessage=True,
            promptTitle="",
            prompt=descriptor.prompt
        )
        sheet.add_data_validation(validation)
        validation.add(self._validation_range(descriptor))

    def _add_pick_list(self, sheet, descriptor: ColumnDescriptor):
        """Restrict data cells of the column to the pick list."""
        validation = DataValidation(
            type="list",
            formula1='"' + ",".join(descriptor.pick_list) + '"',
            allow_blank=True
        )
        sheet.add_data_validation(validation)
        validation.add(self._validation_range(descriptor))

    def _write_header(self, sheet, styles: HeaderStyles):
        """Write column titles, widths and per-column directives to row 1."""
        for descriptor in self.registry.columns:
            cell = sheet.cell(row=1, column=descriptor.ordinal)
            write_text(cell, descriptor.display_name)
            cell.alignment = styles.alignment

            letter = get_column_letter(descriptor.ordinal)
            if descriptor.is_note(self.note_marker):
                cell.font = styles.note_font
                cell.fill = styles.note_fill
                sheet.column_dimensions[letter].width = self.note_column_width / 256
            else:
                cell.font = styles.title_font
                cell.fill = styles.title_fill
                sheet.column_dimensions[letter].width = descriptor.width + 0.72
                sheet.row_dimensions[1].height = descriptor.height

            if descriptor.prompt:
                self._add_prompt(sheet, descriptor)
            if descriptor.pick_list:
                self._add_pick_list(sheet, descriptor)

    def _write_rows(self, sheet, records: Sequence[Optional[BaseModel]],
                    start: int, end: int, styles: HeaderStyles):
        """Write records[start:end] below the header."""
        columns = self.registry.exportable_columns
        row_height = max(column.height for column in self.registry.columns)

        for offset, index in enumerate(range(start, end)):
            row_number = offset + 2
            record = records[index]
            sheet.row_dimensions[row_number].height = row_height

            for descriptor in columns:
                cell = sheet.cell(row=row_number, column=descriptor.ordinal)
                cell.alignment = styles.data_alignment
                text = "" if record is None else self.resolver.resolve(record, descriptor)
                write_text(cell, text)

    def _build_workbook(self, workbook: Workbook, records: Sequence[Optional[BaseModel]],
                        sheet_name: str) -> int:
        """Populate the workbook; returns the number of sheets written."""
        styles = HeaderStyles()
        pages = page_count(len(records), self.sheet_size)

        for index in range(pages):
            sheet = workbook.active if index == 0 else workbook.create_sheet()
            sheet.title = sheet_name if pages == 1 else f"{sheet_name}{index}"

            self._write_header(sheet, styles)

            start = index * self.sheet_size
            end = min(start + self.sheet_size, len(records))
            self._write_rows(sheet, records, start, end, styles)

            logger.debug(f"Sheet '{sheet.title}': rows {start}-{end}")

        return pages

    def export_excel(self, records: Sequence[Optional[BaseModel]], sheet_name: str) -> ExportResult:
        """
        Main export workflow.

        Args:
            records: Records to export; None entries produce blank rows
            sheet_name: Sheet title, and base of the stored filename

        Returns:
            ExportResult describing the stored file

        Raises:
            ExportError: On any failure; no file is left behind
        """
        type_name = self.registry.record_type.__name__
        logger.info(f"Exporting {len(records)} {type_name} records to '{sheet_name}'")

        workbook = Workbook()
        file_path = None

        try:
            sheets = self._build_workbook(workbook, records, sheet_name)

            filename = self.storage.encoding_filename(sheet_name, self.extension)
            file_path = self.storage.get_absolute_file(filename)
            workbook.save(file_path)

        except Exception as e:
            logger.error(f"Export of {type_name} failed: {e}", exc_info=True)
            if file_path is not None:
                try:
                    self.storage.delete_file(file_path)
                except OSError as cleanup_error:
                    logger.error(f"Could not remove partial export {file_path}: {cleanup_error}")
            raise ExportError(f"Export of {type_name} to '{sheet_name}' failed: {e}") from e

        finally:
            workbook.close()

        logger.info(f"Export complete: {file_path} ({sheets} sheets)")

        return ExportResult(
            filename=filename,
            path=file_path,
            sheet_count=sheets,
            row_count=len(records)
        )

"""
Tests for writing records to stored workbooks.
"""

from pathlib import Path
from typing import Annotated, Optional

import pytest
from openpyxl import Workbook, load_workbook
from pydantic import BaseModel

from backend.models import SysDept, SysUser
from core.exceptions import ConfigurationError, ExportError
from services.column_registry import ExcelColumn
from services.excel_export_service import ExcelExportService, page_count


class Schedule(BaseModel):
    title: Annotated[Optional[str], ExcelColumn(name="Title")] = None
    due: Annotated[Optional[str], ExcelColumn(name="Due", date_format="yyyy-MM-dd")] = None


def export_and_load(service, records, sheet_name="dept"):
    export = service.export_excel(records, sheet_name)
    return export, load_workbook(export.path)


def validations(sheet):
    return {str(dv.sqref): dv for dv in sheet.data_validations.dataValidation}


def stored_files(storage, pattern="*"):
    return sorted(Path(storage.download_path).glob(pattern))


class TestPageCount:
    @pytest.mark.parametrize("total,size,expected", [
        (0, 10, 1),
        (1, 10, 1),
        (10, 10, 1),
        (11, 10, 2),
        (5, 2, 3),
    ])
    def test_pages(self, total, size, expected):
        assert page_count(total, size) == expected


class TestHeader:
    """Test the header row and per-column directives."""

    def test_titles_and_styles(self, storage, sample_depts):
        _, workbook = export_and_load(ExcelExportService(SysDept, storage), sample_depts)
        sheet = workbook["dept"]

        titles = [sheet.cell(row=1, column=i).value for i in range(1, 10)]
        assert titles[0] == "Dept ID"
        assert titles[-1] == "Created"

        header = sheet["A1"]
        assert header.font.b
        assert header.fill.fgColor.rgb == "FFFFFFCC"
        assert header.alignment.horizontal == "center"
        assert header.alignment.wrap_text

    def test_column_widths(self, storage, sample_depts):
        _, workbook = export_and_load(ExcelExportService(SysDept, storage), sample_depts)
        sheet = workbook["dept"]

        assert sheet.column_dimensions["A"].width == pytest.approx(10.72)
        assert sheet.column_dimensions["C"].width == pytest.approx(24.72)
        assert sheet.column_dimensions["D"].width == pytest.approx(16.72)

    def test_prompt_and_pick_list(self, storage, sample_depts):
        _, workbook = export_and_load(ExcelExportService(SysDept, storage), sample_depts)
        sheet = workbook["dept"]

        status = [dv for dv in sheet.data_validations.dataValidation if str(dv.sqref) == "H2:H101"]
        assert len(status) == 2

        pick = next(dv for dv in status if dv.type == "list")
        assert pick.formula1 == '"Normal,Disabled"'

        prompt = next(dv for dv in status if dv.type != "list")
        assert prompt.prompt == "Normal or Disabled"
        assert prompt.showInputMessage

    def test_custom_validation_rows(self, storage):
        service = ExcelExportService(SysUser, storage, validation_rows=(1, 10))
        _, workbook = export_and_load(service, [], "user")

        assert "A2:A11" in validations(workbook["user"])

    def test_note_column(self, storage, sample_user):
        _, workbook = export_and_load(ExcelExportService(SysUser, storage), [sample_user], "user")
        sheet = workbook["user"]

        note = sheet["J1"]
        assert note.value == "注：Parent (read only)"
        assert note.font.color.rgb == "FFFF0000"
        assert note.fill.fgColor.rgb == "FFFFFF00"
        assert sheet.column_dimensions["J"].width == pytest.approx(23.4375)


class TestRows:
    """Test data rows below the header."""

    def test_values_are_resolved_text(self, storage, sample_depts):
        _, workbook = export_and_load(ExcelExportService(SysDept, storage), sample_depts)
        sheet = workbook["dept"]

        assert [c.value for c in sheet[2]] == [
            "100", "0", "Head Office", "0", "Alice", "555-0100", "alice@example.org",
            "Normal", "2024-01-02 03:04:05"
        ]
        assert sheet["H3"].value == "Disabled"
        assert all(c.data_type == "s" for c in sheet[2])

    def test_formula_text_stays_text(self, storage):
        record = SysDept(dept_name="=SUM(A1)")
        _, workbook = export_and_load(ExcelExportService(SysDept, storage), [record])
        cell = workbook["dept"]["C2"]

        assert cell.value == "=SUM(A1)"
        assert cell.data_type == "s"

    def test_nested_and_non_exportable_columns(self, storage, sample_user):
        _, workbook = export_and_load(ExcelExportService(SysUser, storage), [sample_user], "user")
        sheet = workbook["user"]

        assert sheet["E2"].value == "female"
        assert sheet["I2"].value == "Development"
        assert sheet["J2"].value is None

    def test_null_record_gives_blank_row(self, storage, sample_depts):
        records = [sample_depts[0], None, sample_depts[1]]
        export, workbook = export_and_load(ExcelExportService(SysDept, storage), records)
        sheet = workbook["dept"]

        assert all(c.value in (None, "") for c in sheet[3])
        assert sheet["A4"].value == "101"
        assert export.row_count == 3

    def test_row_height(self, storage, sample_depts):
        _, workbook = export_and_load(ExcelExportService(SysDept, storage), sample_depts)
        sheet = workbook["dept"]

        assert sheet.row_dimensions[1].height == 14
        assert sheet.row_dimensions[2].height == 14


class TestPaging:
    """Test splitting records across sheets."""

    def test_sheets_are_numbered(self, storage):
        records = [SysDept(dept_id=i) for i in range(1, 6)]
        service = ExcelExportService(SysDept, storage, sheet_size=2)

        export, workbook = export_and_load(service, records)

        assert export.sheet_count == 3
        assert workbook.sheetnames == ["dept0", "dept1", "dept2"]
        assert [workbook["dept0"]["A2"].value, workbook["dept0"]["A3"].value] == ["1", "2"]
        assert workbook["dept1"]["A2"].value == "3"
        assert workbook["dept2"]["A2"].value == "5"
        assert workbook["dept2"].max_row == 2
        assert workbook["dept2"]["A1"].value == "Dept ID"

    def test_exact_multiple_has_no_extra_sheet(self, storage):
        records = [SysDept(dept_id=i) for i in range(4)]

        export = ExcelExportService(SysDept, storage, sheet_size=2).export_excel(records, "dept")

        assert export.sheet_count == 2

    def test_empty_export_has_header_only(self, storage):
        export, workbook = export_and_load(ExcelExportService(SysDept, storage), [])

        assert export.sheet_count == 1
        assert workbook.sheetnames == ["dept"]
        assert workbook["dept"].max_row == 1

    def test_sheet_size_must_be_positive(self, storage):
        with pytest.raises(ValueError):
            ExcelExportService(SysDept, storage, sheet_size=0)


class TestStoredFile:
    """Test naming and cleanup of the stored file."""

    def test_unique_filenames(self, storage, sample_depts):
        service = ExcelExportService(SysDept, storage)

        first = service.export_excel(sample_depts, "dept")
        second = service.export_excel(sample_depts, "dept")

        assert first.filename != second.filename
        assert first.filename.endswith("_dept.xlsx")
        assert len(stored_files(storage, "*.xlsx")) == 2

    def test_invalid_sheet_name(self, storage, sample_depts):
        with pytest.raises(ExportError) as excinfo:
            ExcelExportService(SysDept, storage).export_excel(sample_depts, "bad/name")

        assert isinstance(excinfo.value.__cause__, ValueError)
        assert stored_files(storage) == []

    def test_resolution_failure(self, storage):
        with pytest.raises(ExportError) as excinfo:
            ExcelExportService(Schedule, storage).export_excel([Schedule(due="soon")], "plan")

        assert isinstance(excinfo.value.__cause__, ConfigurationError)
        assert stored_files(storage) == []

    def test_partial_file_is_removed(self, storage, sample_depts, monkeypatch):
        def failing_save(self, filename):
            with open(filename, "wb") as f:
                f.write(b"partial")
            raise OSError("disk full")

        monkeypatch.setattr(Workbook, "save", failing_save)

        with pytest.raises(ExportError, match="disk full"):
            ExcelExportService(SysDept, storage).export_excel(sample_depts, "dept")

        assert stored_files(storage) == []

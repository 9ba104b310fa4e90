"""
Pytest configuration and fixtures for Excel import/export tests.
"""

from datetime import datetime
from io import BytesIO

import pytest
from dotenv import load_dotenv
from openpyxl import Workbook

from backend.models import SysDept, SysUser
from core.config import Settings
from services.storage_service import StorageService

# Load environment
load_dotenv()


@pytest.fixture
def settings(tmp_path):
    """Settings writing exports into a per-test directory."""
    return Settings(DOWNLOAD_PATH=str(tmp_path / "download"))


@pytest.fixture
def storage(tmp_path):
    """Storage service rooted in a per-test directory."""
    return StorageService(str(tmp_path / "download"))


@pytest.fixture
def build_workbook():
    """
    Build an in-memory .xlsx document.

    Usage:
        data = build_workbook({"dept": [["Dept ID"], [100]]})
    """
    def _build(sheets):
        workbook = Workbook()
        workbook.remove(workbook.active)
        for title, rows in sheets.items():
            sheet = workbook.create_sheet(title)
            for row in rows:
                sheet.append(row)
        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return _build


@pytest.fixture
def dept_header():
    return ["Dept ID", "Parent ID", "Dept Name", "Order", "Leader", "Phone", "Email", "Status", "Created"]


@pytest.fixture
def sample_depts():
    """Three departments with every exported column populated."""
    return [
        SysDept(dept_id=100, parent_id=0, dept_name="Head Office", order_num=0, leader="Alice",
                phone="555-0100", email="alice@example.org", status="0",
                create_time=datetime(2024, 1, 2, 3, 4, 5)),
        SysDept(dept_id=101, parent_id=100, dept_name="Research", order_num=1, leader="Bob",
                phone="555-0101", email="bob@example.org", status="1",
                create_time=datetime(2024, 2, 3, 4, 5, 6)),
        SysDept(dept_id=102, parent_id=100, dept_name="Sales", order_num=2, leader="Carol",
                phone="555-0102", email="carol@example.org", status="0",
                create_time=datetime(2024, 3, 4, 5, 6, 7)),
    ]


@pytest.fixture
def sample_user():
    return SysUser(
        user_id=1,
        login_name="admin",
        user_name="Administrator",
        sex="1",
        dept=SysDept(dept_id=103, parent_id=100, dept_name="Development"),
        dept_parent=SysDept(dept_id=103, parent_id=100),
        password="secret"
    )

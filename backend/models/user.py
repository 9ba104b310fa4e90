"""
User record with a nested department column.
"""

from datetime import date
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel

from backend.models.dept import SysDept
from services.column_registry import ColumnKind, ExcelColumn


class SysUser(BaseModel):
    """A system user as listed in the user export."""

    user_id: Annotated[Optional[int], ExcelColumn(name="User ID", prompt="Leave empty for new users")] = None
    login_name: Annotated[Optional[str], ExcelColumn(name="Login Name")] = None
    user_name: Annotated[Optional[str], ExcelColumn(name="User Name")] = None
    email: Annotated[Optional[str], ExcelColumn(name="Email", width=28)] = None
    sex: Annotated[Optional[str], ExcelColumn(
        name="Sex",
        translation="0=male,1=female,2=unknown",
        pick_list=("male", "female", "unknown")
    )] = None
    grade: Annotated[Optional[str], ExcelColumn(name="Grade", kind=ColumnKind.CHAR)] = None
    salary: Annotated[Optional[Decimal], ExcelColumn(name="Salary")] = None
    birthday: Annotated[Optional[date], ExcelColumn(name="Birthday", date_format="yyyy-MM-dd")] = None
    dept: Annotated[Optional[SysDept], ExcelColumn(name="Department", nested_path="dept_name", default_value="-")] = None
    dept_parent: Annotated[Optional[SysDept], ExcelColumn(
        name="注：Parent (read only)",
        nested_path="parent_name",
        exportable=False
    )] = None
    password: Optional[str] = None
